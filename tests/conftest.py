"""
Shared fixtures and factories for debrief tests.
"""

import pytest

from debrief.models import (
    ActionLogEntry,
    EventActor,
    EventType,
    Message,
    ReconstructionInput,
    Rhythm,
    SimPhase,
    StateSnapshot,
    TimelineEvent,
    Vitals,
)


def make_snapshot(timestamp=0, phase=SimPhase.RUNNING, **overrides) -> StateSnapshot:
    """Minimal state snapshot, running SVT by default."""
    fields = dict(
        timestamp=timestamp,
        phase=phase,
        rhythm=Rhythm.ASYSTOLE if phase == SimPhase.ASYSTOLE else Rhythm.SVT,
        vitals=Vitals(hr=0 if phase == SimPhase.ASYSTOLE else 220, spo2=97, bp="92/64", rr=26),
        mark_anxiety=3,
        lily_fear=4,
    )
    fields.update(overrides)
    return StateSnapshot(**fields)


def make_event(
    id,
    timestamp,
    type=EventType.SYSTEM,
    actor=EventActor.SYSTEM,
    content="",
    metadata=None,
    before=None,
    after=None,
) -> TimelineEvent:
    """Timeline event with running-phase state on both sides unless given."""
    return TimelineEvent(
        id=id,
        timestamp=timestamp,
        type=type,
        actor=actor,
        content=content,
        state_before=before or make_snapshot(timestamp - 1),
        state_after=after or make_snapshot(timestamp),
        metadata=metadata or {},
    )


def make_phase_change(id, timestamp, from_phase, to_phase) -> TimelineEvent:
    return make_event(
        id,
        timestamp,
        type=EventType.STATE_CHANGE,
        content=f"Phase: {from_phase.value} → {to_phase.value}",
        metadata={"trigger": "phase_change"},
        before=make_snapshot(timestamp - 1, phase=from_phase),
        after=make_snapshot(timestamp, phase=to_phase),
    )


def make_action(id, timestamp, intervention, **metadata) -> TimelineEvent:
    return make_event(
        id,
        timestamp,
        type=EventType.ACTION,
        actor=EventActor.LEARNER,
        content=intervention,
        metadata={"intervention": intervention, **metadata},
    )


def make_learner_message(id, timestamp, text, explanatory=True) -> TimelineEvent:
    return make_event(
        id,
        timestamp,
        type=EventType.COMMUNICATION,
        actor=EventActor.LEARNER,
        content=text,
        metadata={"was_explanatory": explanatory},
    )


@pytest.fixture
def silent_adenosine_session() -> ReconstructionInput:
    """
    Adenosine pushed with no warning; asystole, dad screams, conversion.
    """
    return ReconstructionInput(
        start_time=1_700_000_000_000,
        messages=[
            Message(who="system", text="Scenario start", time=1_700_000_000_000),
            Message(who="mark", text="HER HEART STOPPED!", time=1_700_000_007_500),
        ],
        action_log=[
            ActionLogEntry(type="adenosine", time=1000, given=1.85, correct=1.85, unit="mg"),
        ],
        state_snapshots=[
            make_snapshot(0, phase=SimPhase.RUNNING),
            make_snapshot(7000, phase=SimPhase.ASYSTOLE),
            make_snapshot(8000, phase=SimPhase.ASYSTOLE, mark_anxiety=5, lily_fear=5),
            make_snapshot(12000, phase=SimPhase.CONVERTED, mark_anxiety=5, lily_fear=5),
        ],
    )
