"""
Communication window detection.

A communication window is an interval, opened by one trigger event and
closed by a later event, during which the learner was expected to give
the family a specific explanation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

import structlog

from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.models.evaluation import CommunicationWindow, Impact
from debrief.models.snapshot import SimPhase
from debrief.models.timeline import EventType, TimelineEvent

logger = structlog.get_logger(__name__)


TriggerPredicate = Callable[[TimelineEvent], bool]
# (candidate, trigger event, config) -> closes the window?
ClosePredicate = Callable[[TimelineEvent, TimelineEvent, EvaluationConfig], bool]


@dataclass(frozen=True)
class WindowTemplate:
    """Definition of one expected communication window."""

    type: str
    name: str
    opens: TriggerPredicate
    closes: ClosePredicate
    optimal_message: str
    impact: Impact
    impact_description: str

    @property
    def window_id(self) -> str:
        return f"window_{self.type}"


def _enters_phase(event: TimelineEvent, phase: SimPhase) -> bool:
    return event.type == EventType.STATE_CHANGE and event.state_after.phase == phase


def _leaves_asystole(event: TimelineEvent, _trigger: TimelineEvent, _config: EvaluationConfig) -> bool:
    return (
        event.type == EventType.STATE_CHANGE
        and event.state_before.phase == SimPhase.ASYSTOLE
        and event.state_after.phase != SimPhase.ASYSTOLE
    )


def _system_mentions(event: TimelineEvent, word: str) -> bool:
    return event.type == EventType.SYSTEM and word in event.content.lower()


# Declaration order is output order
WINDOW_TEMPLATES: tuple[WindowTemplate, ...] = (
    WindowTemplate(
        type="pre_adenosine_warning",
        name="Pre-Adenosine Warning Window",
        opens=lambda e: e.is_action("adenosine"),
        closes=lambda e, _t, _c: _enters_phase(e, SimPhase.ASYSTOLE),
        optimal_message=(
            "Mr. Henderson, watch the monitor with me. Her heart will pause briefly - "
            "that's the medicine working. It looks scary but it's temporary and expected."
        ),
        impact=Impact.CRITICAL,
        impact_description=(
            "Without warning, dad interprets asystole as cardiac arrest. "
            "His panic terrifies Lily."
        ),
    ),
    WindowTemplate(
        type="during_asystole",
        name="Asystole Reassurance Window",
        opens=lambda e: _enters_phase(e, SimPhase.ASYSTOLE),
        closes=_leaves_asystole,
        optimal_message=(
            "This is exactly what we expected. Her heart is resetting. "
            "Watch with me - it should come back in a few seconds."
        ),
        impact=Impact.HIGH,
        impact_description="Family needs ongoing reassurance during the terrifying flatline period.",
    ),
    WindowTemplate(
        type="post_conversion",
        name="Post-Conversion Celebration Window",
        opens=lambda e: _enters_phase(e, SimPhase.CONVERTED),
        closes=lambda e, t, c: e.timestamp > t.timestamp + c.post_conversion_window_ms,
        optimal_message=(
            "Lily, you were so brave! Your heart is all better now. Mr. Henderson, "
            "she's going to be fine - her heart rhythm is normal."
        ),
        impact=Impact.MEDIUM,
        impact_description="Acknowledging success helps family process trauma and builds trust.",
    ),
    WindowTemplate(
        type="initial_reassurance",
        name="Initial Reassurance Window",
        opens=lambda e: _system_mentions(e, "start"),
        closes=lambda e, t, c: e.timestamp > t.timestamp + c.initial_reassurance_window_ms,
        optimal_message=(
            "Mr. Henderson, I know this is scary. Lily's heart is beating too fast, "
            "but she's stable. We're going to fix this."
        ),
        impact=Impact.MEDIUM,
        impact_description="Early reassurance sets expectations and builds trust before interventions.",
    ),
    WindowTemplate(
        type="pre_cardioversion",
        name="Pre-Cardioversion Warning Window",
        opens=lambda e: e.is_action("cardioversion"),
        closes=lambda e, _t, _c: _system_mentions(e, "shock"),
        optimal_message=(
            "Mr. Henderson, we're going to reset her heart with a small electrical pulse. "
            "She's sedated so she won't feel it. You'll see her body jump - that's normal."
        ),
        impact=Impact.HIGH,
        impact_description="Cardioversion is visually dramatic. Unprepared families may panic.",
    ),
)


def _detect_window(
    template: WindowTemplate,
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig,
) -> CommunicationWindow | None:
    trigger = next((e for e in timeline if template.opens(e)), None)
    if trigger is None:
        return None

    closer = next(
        (
            e for e in timeline
            if e.timestamp > trigger.timestamp and template.closes(e, trigger, config)
        ),
        None,
    )
    if closer is None:
        return None

    learner_comms = [
        e for e in timeline
        if trigger.timestamp <= e.timestamp <= closer.timestamp
        and e.is_learner_communication()
    ]
    was_missed = not any(e.metadata.get("was_explanatory") for e in learner_comms)

    return CommunicationWindow(
        id=template.window_id,
        name=template.name,
        start_timestamp=trigger.timestamp,
        end_timestamp=closer.timestamp,
        duration=closer.timestamp - trigger.timestamp,
        trigger_event_id=trigger.id,
        closing_event_id=closer.id,
        optimal_message=template.optimal_message,
        actual_messages=[e.content for e in learner_comms],
        was_missed=was_missed,
        impact=template.impact,
        impact_description=template.impact_description,
    )


def identify_communication_windows(
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[CommunicationWindow]:
    """
    Identify communication windows in the timeline.

    A template that never opens, or opens but never closes, produces no
    window at all; partial matches are not reported as missed.

    Args:
        timeline: Sorted timeline events
        config: Evaluation configuration

    Returns:
        Windows in template declaration order
    """
    windows = []

    for template in WINDOW_TEMPLATES:
        window = _detect_window(template, timeline, config)
        if window is None:
            continue

        logger.debug(
            "Communication window detected",
            window=window.id,
            start=window.start_timestamp,
            end=window.end_timestamp,
            missed=window.was_missed,
        )
        windows.append(window)

    return windows


def get_window(windows: Sequence[CommunicationWindow], window_type: str) -> CommunicationWindow | None:
    """Look up a detected window by its template type."""
    window_id = f"window_{window_type}"
    return next((w for w in windows if w.id == window_id), None)
