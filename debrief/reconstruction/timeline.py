"""
Timeline reconstruction for recorded training sessions.

Merges chat messages, the action log, nurse catches and periodic state
snapshots into one chronologically sorted event stream, synthesizing
state-change events from snapshot diffs along the way.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from typing import Sequence

import structlog

from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.models.session import (
    ActionLogEntry,
    Message,
    NurseCatch,
    ReconstructionInput,
    Speaker,
)
from debrief.models.snapshot import SimPhase, StateSnapshot, baseline_snapshot
from debrief.models.timeline import EventActor, EventType, StateTrigger, TimelineEvent

logger = structlog.get_logger(__name__)


# Speaker -> (event type, actor)
SPEAKER_CLASSIFICATION: dict[Speaker, tuple[EventType, EventActor]] = {
    Speaker.DOCTOR: (EventType.COMMUNICATION, EventActor.LEARNER),
    Speaker.NURSE: (EventType.CHARACTER_RESPONSE, EventActor.NURSE),
    Speaker.LILY: (EventType.CHARACTER_RESPONSE, EventActor.LILY),
    Speaker.MARK: (EventType.CHARACTER_RESPONSE, EventActor.MARK),
    Speaker.SYSTEM: (EventType.SYSTEM, EventActor.SYSTEM),
}

# Checked in order; first match wins
ADDRESSEE_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("lily", re.compile(r"lily|sweetie|honey|sweetheart|kiddo")),
    ("mark", re.compile(r"mr\.?\s*henderson|dad|father|sir")),
    ("team", re.compile(r"nurse|team|everyone")),
    ("family", re.compile(r"you|your|family")),
]

EXPLANATORY_PATTERN = re.compile(
    r"because|going to|will |this is|expected|normal|medicine|heart|help|working"
)


def format_number(value: float) -> str:
    """Render a dose without a trailing .0 for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_timestamp(ms: int) -> str:
    """Render simulation milliseconds as m:ss."""
    seconds = max(0, ms) // 1000
    return f"{seconds // 60}:{seconds % 60:02d}"


def detect_addressed_to(text: str) -> str | None:
    """Guess who a learner message is addressed to."""
    lower = text.lower()
    for addressee, pattern in ADDRESSEE_PATTERNS:
        if pattern.search(lower):
            return addressee
    return None


def is_explanatory(text: str) -> bool:
    """Check whether a message explains what is happening or why."""
    return EXPLANATORY_PATTERN.search(text.lower()) is not None


class SnapshotIndex:
    """
    Time-ordered view over state snapshots.

    Looks up the snapshot in effect at a given timestamp. When no
    snapshots were recorded at all, a baseline snapshot is synthesized.
    """

    def __init__(self, snapshots: Sequence[StateSnapshot]):
        # sorted() is stable, so equal timestamps keep recording order
        self.snapshots = sorted(snapshots, key=lambda s: s.timestamp)
        self._timestamps = [s.timestamp for s in self.snapshots]

    def __len__(self) -> int:
        return len(self.snapshots)

    def at(self, timestamp: int) -> StateSnapshot:
        """Get the last snapshot at or before timestamp (or the earliest one)."""
        if not self.snapshots:
            return baseline_snapshot(timestamp)

        index = bisect_right(self._timestamps, timestamp) - 1
        if index < 0:
            return self.snapshots[0]
        return self.snapshots[index]

    def around(self, timestamp: int) -> tuple[StateSnapshot, StateSnapshot]:
        """Get (state_before, state_after) for an event at timestamp."""
        return self.at(timestamp - 1), self.at(timestamp)


def format_action_content(action: ActionLogEntry) -> str:
    """Describe an action, including the dose when one was given."""
    if action.given is None:
        return action.type

    unit = action.unit or ""
    content = f"{action.type} {format_number(action.given)}{unit}"
    if action.correct is not None:
        content += f" (correct: {format_number(action.correct)}{unit})"
    return content


def _message_event(index: int, msg: Message, start_time: int, snapshots: SnapshotIndex) -> TimelineEvent:
    timestamp = msg.time - start_time
    state_before, state_after = snapshots.around(timestamp)
    event_type, actor = SPEAKER_CLASSIFICATION[msg.who]

    return TimelineEvent(
        id=f"msg_{index}",
        timestamp=timestamp,
        type=event_type,
        actor=actor,
        content=msg.text,
        state_before=state_before,
        state_after=state_after,
        metadata={
            "addressed_to": detect_addressed_to(msg.text),
            "was_explanatory": is_explanatory(msg.text),
        },
    )


def _action_event(index: int, action: ActionLogEntry, snapshots: SnapshotIndex) -> TimelineEvent:
    state_before, state_after = snapshots.around(action.time)

    return TimelineEvent(
        id=f"act_{index}",
        timestamp=action.time,
        type=EventType.ACTION,
        actor=EventActor.LEARNER,
        content=format_action_content(action),
        state_before=state_before,
        state_after=state_after,
        metadata={
            "intervention": action.type,
            "dose": action.given,
            "correct": action.correct,
            "unit": action.unit,
            "result": action.result.value if action.result else None,
        },
    )


def _catch_event(index: int, catch: NurseCatch, snapshots: SnapshotIndex) -> TimelineEvent:
    state_before, state_after = snapshots.around(catch.time)

    return TimelineEvent(
        id=f"catch_{index}",
        timestamp=catch.time,
        type=EventType.NURSE_CATCH,
        actor=EventActor.NURSE,
        content=(
            f"Nurse prevented: {catch.drug} "
            f"{format_number(catch.attempted)}{catch.unit} ({catch.reason})"
        ),
        state_before=state_before,
        state_after=state_after,
        metadata={
            "intervention": catch.drug,
            "dose": catch.attempted,
            "unit": catch.unit,
            "reason": catch.reason,
        },
    )


def detect_state_changes(
    snapshots: Sequence[StateSnapshot],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[TimelineEvent]:
    """
    Synthesize state_change events from consecutive snapshot diffs.

    Emits one event per phase transition, per anxiety rise of at least
    the anxiety threshold, and per fear rise of at least the fear
    threshold. Triggers are independent and may share a timestamp.
    """
    ordered = sorted(snapshots, key=lambda s: s.timestamp)
    events: list[TimelineEvent] = []

    for i in range(1, len(ordered)):
        prev, curr = ordered[i - 1], ordered[i]

        def emit(trigger: StateTrigger, content: str) -> None:
            events.append(TimelineEvent(
                id=f"state_{i}_{trigger.value}",
                timestamp=curr.timestamp,
                type=EventType.STATE_CHANGE,
                actor=EventActor.SYSTEM,
                content=content,
                state_before=prev,
                state_after=curr,
                metadata={"trigger": trigger.value},
            ))

        if prev.phase != curr.phase:
            emit(StateTrigger.PHASE_CHANGE, f"Phase: {prev.phase.value} → {curr.phase.value}")

        if curr.mark_anxiety - prev.mark_anxiety >= config.anxiety_spike_threshold:
            emit(
                StateTrigger.ANXIETY_SPIKE,
                f"Dad anxiety spiked: {prev.mark_anxiety} → {curr.mark_anxiety}",
            )

        if curr.lily_fear - prev.lily_fear >= config.fear_spike_threshold:
            emit(
                StateTrigger.FEAR_SPIKE,
                f"Lily fear increased: {prev.lily_fear} → {curr.lily_fear}",
            )

    return events


def reconstruct_timeline(
    data: ReconstructionInput,
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[TimelineEvent]:
    """
    Reconstruct a unified timeline from recorded session data.

    This is the foundation for all analysis. Message times are epoch ms
    and are offset by `start_time`; action, catch and snapshot times are
    already simulation ms.

    Args:
        data: Recorded session data
        config: Evaluation configuration

    Returns:
        Events stably sorted by timestamp
    """
    snapshots = SnapshotIndex(data.state_snapshots)
    events: list[TimelineEvent] = []

    for i, msg in enumerate(data.messages):
        events.append(_message_event(i, msg, data.start_time, snapshots))

    for i, action in enumerate(data.action_log):
        events.append(_action_event(i, action, snapshots))

    for i, catch in enumerate(data.nurse_catches):
        events.append(_catch_event(i, catch, snapshots))

    events.extend(detect_state_changes(snapshots.snapshots, config))

    timeline = sorted(events, key=lambda e: e.timestamp)

    logger.debug(
        "Timeline reconstructed",
        events=len(timeline),
        messages=len(data.messages),
        actions=len(data.action_log),
        nurse_catches=len(data.nurse_catches),
        snapshots=len(snapshots),
    )

    return timeline


# =============================================================================
# Timeline analysis helpers
# =============================================================================


def find_silence_gaps(
    timeline: Sequence[TimelineEvent],
    min_gap_ms: int = DEFAULT_CONFIG.silence_gap_ms,
) -> list[dict[str, int]]:
    """
    Find stretches where the learner neither spoke nor acted.

    Returns:
        List of {"start", "end", "duration"} dicts, in time order
    """
    learner_events = sorted(
        (e for e in timeline if e.actor == EventActor.LEARNER),
        key=lambda e: e.timestamp,
    )

    gaps = []
    for prev, curr in zip(learner_events, learner_events[1:]):
        gap = curr.timestamp - prev.timestamp
        if gap >= min_gap_ms:
            gaps.append({"start": prev.timestamp, "end": curr.timestamp, "duration": gap})

    return gaps


def get_events_in_phase(timeline: Sequence[TimelineEvent], phase: SimPhase) -> list[TimelineEvent]:
    """Get events whose before or after state is in the given phase."""
    return [
        e for e in timeline
        if e.state_before.phase == phase or e.state_after.phase == phase
    ]


def calculate_emotional_trajectory(
    timeline: Sequence[TimelineEvent],
) -> dict[str, list[dict[str, int]]]:
    """
    Track how Mark's anxiety and Lily's fear moved over the session.

    Only changes are recorded, so consecutive duplicate values collapse
    into the first event that showed them.
    """
    mark_anxiety: list[dict[str, int]] = []
    lily_fear: list[dict[str, int]] = []
    last_mark: int | None = None
    last_lily: int | None = None

    for event in timeline:
        if event.state_after.mark_anxiety != last_mark:
            last_mark = event.state_after.mark_anxiety
            mark_anxiety.append({"timestamp": event.timestamp, "value": last_mark})

        if event.state_after.lily_fear != last_lily:
            last_lily = event.state_after.lily_fear
            lily_fear.append({"timestamp": event.timestamp, "value": last_lily})

    return {"mark_anxiety": mark_anxiety, "lily_fear": lily_fear}
