"""
Tests for pivot point detection.
"""

import pytest

from debrief.analysis import (
    PIVOT_RULES,
    get_errors,
    get_most_critical_pivot,
    get_successes,
    identify_pivot_points,
)
from debrief.config import EvaluationConfig
from debrief.models import (
    IMPACT_RANK,
    CommunicationWindow,
    EventActor,
    EventType,
    Impact,
    PivotType,
    SimPhase,
)

from conftest import make_action, make_event, make_phase_change


def make_window(window_type, start, end, was_missed, messages=None) -> CommunicationWindow:
    if messages is None:
        messages = [] if was_missed else ["Some message"]
    return CommunicationWindow(
        id=f"window_{window_type}",
        name="Test Window",
        start_timestamp=start,
        end_timestamp=end,
        duration=end - start,
        trigger_event_id="trigger",
        closing_event_id="closing",
        optimal_message="Optimal message",
        actual_messages=messages,
        was_missed=was_missed,
        impact=Impact.HIGH,
        impact_description="Impact description",
    )


def pivot_ids(pivots):
    return [p.id for p in pivots]


class TestNoWarningBeforeAsystole:
    """Tests for the missed pre-asystole warning rule."""

    def test_detects_missed_warning(self):
        """Test detection when the warning window was missed."""
        timeline = [make_phase_change("e1", 1000, SimPhase.RUNNING, SimPhase.ASYSTOLE)]
        windows = [make_window("pre_adenosine_warning", 500, 1000, was_missed=True)]

        pivots = identify_pivot_points(timeline, windows)
        pivot = next(p for p in pivots if p.id == "pivot_no_warning_before_asystole")

        assert pivot.impact == Impact.CRITICAL
        assert pivot.type == PivotType.MISSED_OPPORTUNITY
        assert pivot.timestamp == 500
        assert pivot.affected_characters == [EventActor.MARK, EventActor.LILY]
        assert pivot.state_impact.mark_anxiety_delta == 2
        assert pivot.expert_would_say is not None

    def test_not_detected_when_warned(self):
        """Test no detection when the window was used."""
        timeline = [make_phase_change("e1", 1000, SimPhase.RUNNING, SimPhase.ASYSTOLE)]
        windows = [make_window("pre_adenosine_warning", 500, 1000, was_missed=False)]

        pivots = identify_pivot_points(timeline, windows)

        assert "pivot_no_warning_before_asystole" not in pivot_ids(pivots)

    def test_requires_asystole_onset(self):
        """Test that a missed window alone is insufficient evidence."""
        windows = [make_window("pre_adenosine_warning", 500, 1000, was_missed=True)]

        pivots = identify_pivot_points([], windows)

        assert "pivot_no_warning_before_asystole" not in pivot_ids(pivots)


class TestWindowRules:
    """Tests for rules driven purely by missed windows."""

    @pytest.mark.parametrize("window_type,pivot_id,impact", [
        ("during_asystole", "pivot_silence_during_asystole", Impact.HIGH),
        ("pre_cardioversion", "pivot_no_cardioversion_warning", Impact.HIGH),
        ("post_conversion", "pivot_no_post_conversion_ack", Impact.LOW),
    ])
    def test_missed_window_fires(self, window_type, pivot_id, impact):
        """Test each window rule fires on a missed window."""
        pivots = identify_pivot_points([], [make_window(window_type, 1000, 5000, was_missed=True)])

        assert pivot_ids(pivots) == [pivot_id]
        assert pivots[0].impact == impact
        assert pivots[0].timestamp == 1000

    @pytest.mark.parametrize("window_type", ["during_asystole", "pre_cardioversion", "post_conversion"])
    def test_used_window_does_not_fire(self, window_type):
        """Test nothing fires when the window was used."""
        pivots = identify_pivot_points([], [make_window(window_type, 1000, 5000, was_missed=False)])

        assert pivots == []


class TestSkippedVagal:
    """Tests for the skipped vagal rule."""

    def test_detects_skipped_vagal(self):
        """Test adenosine without prior vagal."""
        timeline = [make_action("e1", 1000, "adenosine")]

        pivots = identify_pivot_points(timeline, [])

        assert pivot_ids(pivots) == ["pivot_skipped_vagal"]
        assert pivots[0].type == PivotType.DECISION
        assert pivots[0].impact == Impact.MEDIUM
        assert len(pivots[0].alternatives) == 2

    def test_vagal_first_is_fine(self):
        """Test vagal before adenosine."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine"),
        ]

        assert identify_pivot_points(timeline, []) == []

    def test_vagal_at_same_time_does_not_count(self):
        """Test that vagal must be strictly before adenosine."""
        timeline = [
            make_action("e1", 1000, "vagal"),
            make_action("e2", 1000, "adenosine"),
        ]

        assert pivot_ids(identify_pivot_points(timeline, [])) == ["pivot_skipped_vagal"]

    def test_no_adenosine_no_pivot(self):
        """Test that the rule needs an adenosine action."""
        assert identify_pivot_points([make_action("e1", 1000, "vagal")], []) == []


class TestDoseRules:
    """Tests for dosing error rules."""

    def test_nurse_catch_detected(self):
        """Test dose error caught by nurse."""
        timeline = [
            make_event(
                "e1", 3000,
                type=EventType.NURSE_CATCH,
                actor=EventActor.NURSE,
                content="Nurse prevented: adenosine 18.5mg (10x dose)",
                metadata={"intervention": "adenosine", "dose": 18.5, "unit": "mg", "reason": "10x dose"},
            ),
        ]

        pivots = identify_pivot_points(timeline, [])

        assert pivot_ids(pivots) == ["pivot_dose_error_caught"]
        assert pivots[0].decision == "Ordered 18.5mg adenosine"
        assert "10x dose" in pivots[0].actual_outcome

    def test_underdose_just_below_threshold(self):
        """Test that a ratio just under 0.7 fires."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine", dose=0.699999, correct=1.0, unit="mg"),
        ]

        assert "pivot_significant_underdose" in pivot_ids(identify_pivot_points(timeline, []))

    def test_underdose_exactly_at_threshold(self):
        """Test that a ratio of exactly 0.7 does not fire."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine", dose=0.7, correct=1.0, unit="mg"),
        ]

        assert "pivot_significant_underdose" not in pivot_ids(identify_pivot_points(timeline, []))

    def test_underdose_outcome_text(self):
        """Test decision and outcome wording."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine", dose=0.5, correct=1.85, unit="mg"),
        ]

        pivot = identify_pivot_points(timeline, [])[0]

        assert pivot.decision == "Gave 0.5mg (correct: 1.85mg)"
        assert pivot.actual_outcome == "Dose was 73% under. Reduced efficacy."

    @pytest.mark.parametrize("metadata", [
        {},
        {"dose": 0.5},
        {"correct": 1.85},
        {"dose": 0.5, "correct": 0},
    ])
    def test_missing_dose_data_is_insufficient_evidence(self, metadata):
        """Test that incomplete metadata disqualifies the rule without error."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine", **metadata),
        ]

        assert identify_pivot_points(timeline, []) == []

    def test_threshold_configurable(self):
        """Test a stricter underdose threshold."""
        timeline = [
            make_action("e1", 500, "vagal"),
            make_action("e2", 1000, "adenosine", dose=0.8, correct=1.0),
        ]
        config = EvaluationConfig(underdose_ratio_threshold=0.9)

        assert pivot_ids(identify_pivot_points(timeline, [], config)) == ["pivot_significant_underdose"]


class TestGoodWarning:
    """Tests for the warning success rule."""

    def test_detects_good_warning(self):
        """Test a used window with warning vocabulary."""
        windows = [make_window(
            "pre_adenosine_warning", 1000, 1200, was_missed=False,
            messages=["Mr. Henderson, watch the monitor with me"],
        )]

        pivots = identify_pivot_points([], windows)

        assert pivot_ids(pivots) == ["pivot_good_warning_given"]
        assert pivots[0].type == PivotType.SUCCESS

    def test_requires_warning_vocabulary(self):
        """Test that explanation without warning vocabulary is not a success."""
        windows = [make_window(
            "pre_adenosine_warning", 1000, 1200, was_missed=False,
            messages=["This is the medicine going in"],
        )]

        assert identify_pivot_points([], windows) == []


class TestOrderingAndSelection:
    """Tests for pivot ordering and focus selection."""

    def test_underdose_sorted_before_skipped_vagal(self):
        """Test an underdose with no vagal yields both, high before medium."""
        timeline = [make_action("e1", 1000, "adenosine", dose=0.5, correct=1.85, unit="mg")]

        pivots = identify_pivot_points(timeline, [])

        assert pivot_ids(pivots) == ["pivot_significant_underdose", "pivot_skipped_vagal"]

    def test_sorted_by_impact_rank(self):
        """Test the ordering invariant with many rules firing."""
        timeline = [
            make_action("e1", 1000, "adenosine", dose=0.5, correct=1.85),
            make_phase_change("e2", 2000, SimPhase.RUNNING, SimPhase.ASYSTOLE),
            make_event("e3", 3000, type=EventType.NURSE_CATCH, actor=EventActor.NURSE),
        ]
        windows = [
            make_window("pre_adenosine_warning", 1000, 2000, was_missed=True),
            make_window("during_asystole", 2000, 6000, was_missed=True),
            make_window("post_conversion", 6000, 22000, was_missed=True),
        ]

        pivots = identify_pivot_points(timeline, windows)
        ranks = [IMPACT_RANK[p.impact] for p in pivots]

        assert ranks == sorted(ranks)
        assert pivots[0].id == "pivot_no_warning_before_asystole"
        assert pivots[-1].id == "pivot_no_post_conversion_ack"
        # Equal impact keeps rule order
        assert pivot_ids(pivots)[1:3] == ["pivot_silence_during_asystole", "pivot_significant_underdose"]

    def test_pivot_ids_unique(self):
        """Test each rule fires at most once."""
        timeline = [
            make_action("e1", 1000, "adenosine", dose=0.5, correct=1.85),
            make_action("e2", 5000, "adenosine", dose=0.6, correct=3.7),
        ]

        ids = pivot_ids(identify_pivot_points(timeline, []))

        assert len(ids) == len(set(ids))

    def test_rule_registry_closed(self):
        """Test the rule set and its evaluation order."""
        assert [r.id for r in PIVOT_RULES] == [
            "no_warning_before_asystole",
            "silence_during_asystole",
            "skipped_vagal",
            "no_cardioversion_warning",
            "no_post_conversion_ack",
            "dose_error_caught",
            "significant_underdose",
            "good_warning_given",
        ]

    def test_most_critical_prefers_critical_missed_opportunity(self):
        """Test focus selection."""
        timeline = [
            make_action("e1", 1000, "adenosine"),
            make_phase_change("e2", 2000, SimPhase.RUNNING, SimPhase.ASYSTOLE),
        ]
        windows = [make_window("pre_adenosine_warning", 1000, 2000, was_missed=True)]

        pivot = get_most_critical_pivot(identify_pivot_points(timeline, windows))

        assert pivot.id == "pivot_no_warning_before_asystole"

    def test_most_critical_falls_back_to_first(self):
        """Test fallback to the highest-ranked pivot."""
        pivots = identify_pivot_points([make_action("e1", 1000, "adenosine", dose=0.5, correct=1.85)], [])

        assert get_most_critical_pivot(pivots).id == "pivot_significant_underdose"

    def test_most_critical_empty(self):
        """Test no pivots."""
        assert get_most_critical_pivot([]) is None

    def test_successes_and_errors(self):
        """Test success and error partitioning."""
        timeline = [make_action("e1", 1000, "adenosine", dose=0.5, correct=1.85)]
        windows = [make_window(
            "pre_adenosine_warning", 1000, 2000, was_missed=False,
            messages=["Her heart will pause briefly"],
        )]

        pivots = identify_pivot_points(timeline, windows)

        assert pivot_ids(get_successes(pivots)) == ["pivot_good_warning_given"]
        assert pivot_ids(get_errors(pivots)) == ["pivot_significant_underdose"]
