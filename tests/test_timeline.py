"""
Tests for timeline reconstruction and timeline analysis helpers.
"""

import pytest

from debrief.config import EvaluationConfig
from debrief.models import (
    ActionLogEntry,
    EventActor,
    EventType,
    Message,
    NurseCatch,
    ReconstructionInput,
    SimPhase,
)
from debrief.reconstruction import (
    SnapshotIndex,
    calculate_emotional_trajectory,
    detect_addressed_to,
    detect_state_changes,
    find_silence_gaps,
    get_events_in_phase,
    is_explanatory,
    reconstruct_timeline,
)

from conftest import make_event, make_snapshot


class TestMessageClassification:
    """Tests for addressee and explanation detection."""

    @pytest.mark.parametrize("text,expected", [
        ("Lily, you're doing great", "lily"),
        ("Hey sweetie, hold still", "lily"),
        ("Mr. Henderson, please sit down", "mark"),
        ("Nurse, push the flush", "team"),
        ("We are going to help", None),
    ])
    def test_detect_addressed_to(self, text, expected):
        """Test addressee detection from names and roles."""
        assert detect_addressed_to(text) == expected

    def test_explanatory_vocabulary(self):
        """Test explanation vocabulary detection."""
        assert is_explanatory("This is expected, her heart will pause")
        assert is_explanatory("It's the medicine WORKING")
        assert not is_explanatory("Push it now")


class TestSnapshotIndex:
    """Tests for snapshot lookup."""

    def test_empty_index_synthesizes_baseline(self):
        """Test baseline snapshot when nothing was recorded."""
        index = SnapshotIndex([])
        snapshot = index.at(5000)

        assert snapshot.phase == SimPhase.IDLE
        assert snapshot.vitals.hr == 220
        assert snapshot.timestamp == 5000

    def test_last_snapshot_at_or_before(self):
        """Test lookup of the snapshot in effect."""
        index = SnapshotIndex([
            make_snapshot(2000, phase=SimPhase.ASYSTOLE),
            make_snapshot(0),
        ])

        assert index.at(1999).timestamp == 0
        assert index.at(2000).timestamp == 2000
        assert index.at(9000).timestamp == 2000

    def test_before_first_snapshot_uses_earliest(self):
        """Test lookup before any snapshot exists."""
        index = SnapshotIndex([make_snapshot(1000), make_snapshot(3000)])

        assert index.at(0).timestamp == 1000

    def test_around_returns_before_and_after(self):
        """Test that an event on a snapshot boundary sees the transition."""
        index = SnapshotIndex([make_snapshot(0), make_snapshot(2000, phase=SimPhase.ASYSTOLE)])
        before, after = index.around(2000)

        assert before.phase == SimPhase.RUNNING
        assert after.phase == SimPhase.ASYSTOLE


class TestStateChanges:
    """Tests for snapshot diffing."""

    def test_phase_transition(self):
        """Test one event per phase transition."""
        events = detect_state_changes([
            make_snapshot(0),
            make_snapshot(1000, phase=SimPhase.ASYSTOLE),
        ])

        assert len(events) == 1
        assert events[0].id == "state_1_phase_change"
        assert events[0].content == "Phase: RUNNING → ASYSTOLE"
        assert events[0].timestamp == 1000
        assert events[0].metadata["trigger"] == "phase_change"

    def test_small_anxiety_rise_ignored(self):
        """Test that an anxiety rise below the threshold is not a spike."""
        events = detect_state_changes([
            make_snapshot(0, mark_anxiety=3),
            make_snapshot(1000, mark_anxiety=4),
        ])

        assert events == []

    def test_concurrent_triggers_share_timestamp(self):
        """Test that phase, anxiety and fear triggers are independent."""
        events = detect_state_changes([
            make_snapshot(0, mark_anxiety=3, lily_fear=4),
            make_snapshot(1000, phase=SimPhase.ASYSTOLE, mark_anxiety=5, lily_fear=5),
        ])

        assert [e.metadata["trigger"] for e in events] == [
            "phase_change", "anxiety_spike", "fear_spike",
        ]
        assert {e.timestamp for e in events} == {1000}
        assert events[1].content == "Dad anxiety spiked: 3 → 5"
        assert events[2].content == "Lily fear increased: 4 → 5"

    def test_thresholds_configurable(self):
        """Test a lower anxiety threshold."""
        config = EvaluationConfig(anxiety_spike_threshold=1)
        events = detect_state_changes([
            make_snapshot(0, mark_anxiety=3),
            make_snapshot(1000, mark_anxiety=4),
        ], config)

        assert len(events) == 1
        assert events[0].metadata["trigger"] == "anxiety_spike"

    def test_decreases_ignored(self):
        """Test that falling anxiety and fear produce nothing."""
        events = detect_state_changes([
            make_snapshot(0, mark_anxiety=5, lily_fear=5),
            make_snapshot(1000, mark_anxiety=2, lily_fear=1),
        ])

        assert events == []


class TestReconstructTimeline:
    """Tests for full timeline reconstruction."""

    def test_empty_session(self):
        """Test that an empty session reconstructs to an empty timeline."""
        assert reconstruct_timeline(ReconstructionInput()) == []

    def test_sorted_by_timestamp(self, silent_adenosine_session):
        """Test the sort invariant over a realistic session."""
        timeline = reconstruct_timeline(silent_adenosine_session)

        assert len(timeline) > 0
        for earlier, later in zip(timeline, timeline[1:]):
            assert earlier.timestamp <= later.timestamp

    def test_stable_sort_keeps_source_order(self):
        """Test that events sharing a timestamp keep concatenation order."""
        data = ReconstructionInput(
            messages=[Message(who="doctor", text="Pushing now", time=1000)],
            action_log=[ActionLogEntry(type="adenosine", time=1000)],
            nurse_catches=[
                NurseCatch(drug="adenosine", attempted=18.5, unit="mg", reason="exceeds max", time=1000),
            ],
        )
        timeline = reconstruct_timeline(data)

        assert [e.id for e in timeline] == ["msg_0", "act_0", "catch_0"]

    def test_message_offset_by_start_time(self):
        """Test that message epoch times become session times."""
        data = ReconstructionInput(
            start_time=1_700_000_000_000,
            messages=[Message(who="lily", text="It hurts", time=1_700_000_002_500)],
        )
        event = reconstruct_timeline(data)[0]

        assert event.timestamp == 2500
        assert event.type == EventType.CHARACTER_RESPONSE
        assert event.actor == EventActor.LILY

    def test_doctor_message_is_learner_communication(self):
        """Test classification and metadata of learner messages."""
        data = ReconstructionInput(
            messages=[Message(who="doctor", text="Mr. Henderson, this is expected", time=100)],
        )
        event = reconstruct_timeline(data)[0]

        assert event.type == EventType.COMMUNICATION
        assert event.actor == EventActor.LEARNER
        assert event.metadata["addressed_to"] == "mark"
        assert event.metadata["was_explanatory"] is True

    def test_action_content_with_dose(self):
        """Test dose formatting in action content."""
        data = ReconstructionInput(
            action_log=[ActionLogEntry(type="adenosine", time=1000, given=0.5, correct=1.85, unit="mg")],
        )
        event = reconstruct_timeline(data)[0]

        assert event.content == "adenosine 0.5mg (correct: 1.85mg)"
        assert event.metadata["intervention"] == "adenosine"
        assert event.metadata["dose"] == 0.5
        assert event.metadata["correct"] == 1.85

    def test_action_content_without_dose(self):
        """Test bare action content."""
        data = ReconstructionInput(action_log=[ActionLogEntry(type="vagal", time=0)])

        assert reconstruct_timeline(data)[0].content == "vagal"

    def test_nurse_catch_event(self):
        """Test nurse catch description."""
        data = ReconstructionInput(
            nurse_catches=[
                NurseCatch(drug="adenosine", attempted=18.5, unit="mg", reason="10x dose", time=3000),
            ],
        )
        event = reconstruct_timeline(data)[0]

        assert event.type == EventType.NURSE_CATCH
        assert event.actor == EventActor.NURSE
        assert event.content == "Nurse prevented: adenosine 18.5mg (10x dose)"
        assert event.metadata["reason"] == "10x dose"

    def test_events_carry_snapshot_state(self, silent_adenosine_session):
        """Test before/after state attached to each event."""
        timeline = reconstruct_timeline(silent_adenosine_session)
        scream = next(e for e in timeline if e.actor == EventActor.MARK)

        assert scream.timestamp == 7500
        assert scream.state_after.phase == SimPhase.ASYSTOLE

    def test_deterministic_ids(self, silent_adenosine_session):
        """Test that reconstruction is repeatable."""
        first = reconstruct_timeline(silent_adenosine_session)
        second = reconstruct_timeline(silent_adenosine_session)

        assert [e.model_dump() for e in first] == [e.model_dump() for e in second]


class TestTimelineHelpers:
    """Tests for silence gaps, phase filtering and emotional trajectory."""

    def test_find_silence_gaps(self):
        """Test gaps at or above the minimum."""
        timeline = [
            make_event("e1", 0, type=EventType.COMMUNICATION, actor=EventActor.LEARNER),
            make_event("e2", 3000, actor=EventActor.NURSE),
            make_event("e3", 10000, type=EventType.ACTION, actor=EventActor.LEARNER),
            make_event("e4", 12000, type=EventType.COMMUNICATION, actor=EventActor.LEARNER),
        ]

        gaps = find_silence_gaps(timeline, min_gap_ms=5000)

        assert gaps == [{"start": 0, "end": 10000, "duration": 10000}]

    def test_get_events_in_phase(self):
        """Test filtering by either side of the event's state."""
        entering = make_event(
            "e1", 1000,
            before=make_snapshot(999),
            after=make_snapshot(1000, phase=SimPhase.ASYSTOLE),
        )
        running = make_event("e2", 500)

        assert get_events_in_phase([running, entering], SimPhase.ASYSTOLE) == [entering]

    def test_calculate_emotional_trajectory(self):
        """Test that only changes are recorded."""
        timeline = [
            make_event("e1", 0, after=make_snapshot(0, mark_anxiety=3, lily_fear=4)),
            make_event("e2", 1000, after=make_snapshot(1000, mark_anxiety=3, lily_fear=4)),
            make_event("e3", 2000, after=make_snapshot(2000, mark_anxiety=5, lily_fear=4)),
        ]

        trajectory = calculate_emotional_trajectory(timeline)

        assert trajectory["mark_anxiety"] == [
            {"timestamp": 0, "value": 3},
            {"timestamp": 2000, "value": 5},
        ]
        assert trajectory["lily_fear"] == [{"timestamp": 0, "value": 4}]
