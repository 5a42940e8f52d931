"""
Pivot point identification.

Applies a closed, ordered set of independent rules to the timeline and
its communication windows to surface the decisions, errors and
successes that matter most for learning.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

import structlog

from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.models.evaluation import (
    IMPACT_RANK,
    Alternative,
    CommunicationWindow,
    Impact,
    PivotPoint,
    PivotType,
    StateImpact,
)
from debrief.models.snapshot import SimPhase
from debrief.models.timeline import EventActor, EventType, TimelineEvent
from debrief.reconstruction.timeline import format_number
from debrief.reconstruction.windows import get_window

logger = structlog.get_logger(__name__)


WARNING_VOCABULARY = re.compile(r"expect|normal|pause|temporary|brief|watch|monitor")


@dataclass
class Detection:
    """What a rule extracted from the timeline when it fired."""

    timestamp: int
    decision: str
    actual_outcome: str
    affected_characters: list[EventActor] = field(default_factory=list)
    mark_anxiety_delta: int = 0
    lily_fear_delta: int = 0


Detector = Callable[
    [Sequence[TimelineEvent], Sequence[CommunicationWindow], EvaluationConfig],
    Optional[Detection],
]


@dataclass(frozen=True)
class PivotRule:
    """A pivot detection rule plus the teaching content it carries."""

    id: str
    name: str
    type: PivotType
    impact: Impact
    detect: Detector
    description: str
    teaching_point: str
    alternatives: tuple[Alternative, ...] = ()
    expert_would_say: Optional[str] = None

    @property
    def pivot_id(self) -> str:
        return f"pivot_{self.id}"


# =============================================================================
# Detectors
# =============================================================================


def _missed_window(windows: Sequence[CommunicationWindow], window_type: str) -> CommunicationWindow | None:
    window = get_window(windows, window_type)
    if window is None or not window.was_missed:
        return None
    return window


def _first_adenosine(timeline: Sequence[TimelineEvent]) -> TimelineEvent | None:
    return next((e for e in timeline if e.is_action("adenosine")), None)


def detect_no_warning_before_asystole(timeline, windows, config) -> Detection | None:
    window = _missed_window(windows, "pre_adenosine_warning")
    if window is None:
        return None

    asystole_onset = any(
        e.type == EventType.STATE_CHANGE and e.state_after.phase == SimPhase.ASYSTOLE
        for e in timeline
    )
    if not asystole_onset:
        return None

    return Detection(
        timestamp=window.start_timestamp,
        decision="Said nothing to family before adenosine effect",
        actual_outcome="Dad blindsided by flatline, panicked, screamed. Lily heard and became terrified.",
        affected_characters=[EventActor.MARK, EventActor.LILY],
        mark_anxiety_delta=2,  # typically 3 -> 5
        lily_fear_delta=1,     # typically 4 -> 5
    )


def detect_silence_during_asystole(timeline, windows, config) -> Detection | None:
    window = _missed_window(windows, "during_asystole")
    if window is None:
        return None

    return Detection(
        timestamp=window.start_timestamp,
        decision="Remained silent during asystole period",
        actual_outcome="Family left alone with terror during flatline. No ongoing reassurance.",
        affected_characters=[EventActor.MARK, EventActor.LILY],
        mark_anxiety_delta=1,
        lily_fear_delta=1,
    )


def detect_skipped_vagal(timeline, windows, config) -> Detection | None:
    adenosine = _first_adenosine(timeline)
    if adenosine is None:
        return None

    vagal_first = any(
        e.is_action("vagal") and e.timestamp < adenosine.timestamp
        for e in timeline
    )
    if vagal_first:
        return None

    return Detection(
        timestamp=adenosine.timestamp,
        decision="Proceeded directly to adenosine without trying vagal maneuvers",
        actual_outcome="Jumped to medication. Vagal has 25% success rate with zero risk.",
        affected_characters=[EventActor.LILY],
    )


def detect_no_cardioversion_warning(timeline, windows, config) -> Detection | None:
    window = _missed_window(windows, "pre_cardioversion")
    if window is None:
        return None

    return Detection(
        timestamp=window.start_timestamp,
        decision="Did not warn family before cardioversion",
        actual_outcome="Family saw child shocked without preparation. Visually traumatic.",
        affected_characters=[EventActor.MARK],
        mark_anxiety_delta=2,
        lily_fear_delta=0,  # sedated
    )


def detect_no_post_conversion_ack(timeline, windows, config) -> Detection | None:
    window = _missed_window(windows, "post_conversion")
    if window is None:
        return None

    return Detection(
        timestamp=window.start_timestamp,
        decision="Did not acknowledge successful conversion to family",
        actual_outcome="Family left uncertain about outcome. Missed chance to rebuild trust.",
        affected_characters=[EventActor.MARK, EventActor.LILY],
    )


def detect_dose_error_caught(timeline, windows, config) -> Detection | None:
    catch = next((e for e in timeline if e.type == EventType.NURSE_CATCH), None)
    if catch is None:
        return None

    dose = catch.metadata.get("dose")
    unit = catch.metadata.get("unit") or ""
    ordered = f"{format_number(dose)}{unit} " if dose is not None else ""

    return Detection(
        timestamp=catch.timestamp,
        decision=f"Ordered {ordered}{catch.metadata.get('intervention', 'medication')}",
        actual_outcome=f"Nurse caught error: {catch.metadata.get('reason', 'out of policy')}. Patient protected.",
        affected_characters=[EventActor.NURSE],
    )


def _dose_ratio(event: TimelineEvent) -> float | None:
    dose = event.metadata.get("dose")
    correct = event.metadata.get("correct")
    if dose is None or not correct:
        return None
    return dose / correct


def detect_significant_underdose(timeline, windows, config) -> Detection | None:
    for event in timeline:
        if not event.is_action("adenosine"):
            continue

        ratio = _dose_ratio(event)
        if ratio is None or ratio >= config.underdose_ratio_threshold:
            continue

        unit = event.metadata.get("unit") or ""
        return Detection(
            timestamp=event.timestamp,
            decision=(
                f"Gave {format_number(event.metadata['dose'])}{unit} "
                f"(correct: {format_number(event.metadata['correct'])}{unit})"
            ),
            actual_outcome=f"Dose was {round((1 - ratio) * 100)}% under. Reduced efficacy.",
            affected_characters=[EventActor.LILY],
        )

    return None


def detect_good_warning_given(timeline, windows, config) -> Detection | None:
    window = get_window(windows, "pre_adenosine_warning")
    if window is None or window.was_missed:
        return None

    if not any(WARNING_VOCABULARY.search(msg.lower()) for msg in window.actual_messages):
        return None

    return Detection(
        timestamp=window.start_timestamp,
        decision="Warned family before adenosine effect",
        actual_outcome="Family prepared for asystole. Anxiety stayed manageable.",
        affected_characters=[EventActor.MARK],
        mark_anxiety_delta=1,  # still rises, just not to panic
    )


# =============================================================================
# Rule registry (evaluation order)
# =============================================================================

PIVOT_RULES: tuple[PivotRule, ...] = (
    PivotRule(
        id="no_warning_before_asystole",
        name="No Warning Before Asystole",
        type=PivotType.MISSED_OPPORTUNITY,
        impact=Impact.CRITICAL,
        detect=detect_no_warning_before_asystole,
        description="Failed to warn family before adenosine-induced asystole",
        teaching_point=(
            'The 6-second window between "pushing adenosine" and asystole is critical. '
            "A prepared family stays calm; an unprepared family panics."
        ),
        alternatives=(
            Alternative(
                action="Warn dad before pushing adenosine",
                rationale="Prepared families interpret asystole as expected, not as death",
                expected_outcome="Dad stays at 3-4/5 anxiety instead of spiking to 5",
                is_preferred_practice=True,
            ),
        ),
        expert_would_say=(
            "Mr. Henderson, watch the monitor with me. Her heart will pause briefly - "
            "that's the medicine working. It looks scary but it's temporary."
        ),
    ),
    PivotRule(
        id="silence_during_asystole",
        name="Silence During Asystole",
        type=PivotType.MISSED_OPPORTUNITY,
        impact=Impact.HIGH,
        detect=detect_silence_during_asystole,
        description="No reassurance provided during the asystole period",
        teaching_point=(
            "Even if you warned before, ongoing narration during the flatline "
            "(\"It's coming back... any second now...\") helps families cope."
        ),
        alternatives=(
            Alternative(
                action="Provide ongoing reassurance during asystole",
                rationale="Narrating what's happening gives family something to hold onto",
                expected_outcome="Family remains anxious but not panicked",
                is_preferred_practice=True,
            ),
        ),
        expert_would_say=(
            "This is exactly what we expected. Watch with me - her heart is resetting. "
            "Should come back any second now..."
        ),
    ),
    PivotRule(
        id="skipped_vagal",
        name="Skipped Vagal Maneuvers",
        type=PivotType.DECISION,
        impact=Impact.MEDIUM,
        detect=detect_skipped_vagal,
        description="Skipped vagal maneuvers before adenosine",
        teaching_point=(
            "Vagal maneuvers (ice to face) work 25% of the time with zero medication risk. "
            "Worth trying first for stable SVT."
        ),
        alternatives=(
            Alternative(
                action="Try vagal maneuvers first",
                rationale="25% success rate, no medication needed, demonstrates conservative approach",
                expected_outcome="1 in 4 patients convert without needing adenosine",
                is_preferred_practice=True,
            ),
            Alternative(
                action="Proceed to adenosine (current choice)",
                rationale="Faster, higher success rate, reasonable for clearly SVT",
                expected_outcome="Patient gets medication, 60% success on first dose",
                is_preferred_practice=False,
            ),
        ),
    ),
    PivotRule(
        id="no_cardioversion_warning",
        name="No Pre-Cardioversion Warning",
        type=PivotType.MISSED_OPPORTUNITY,
        impact=Impact.HIGH,
        detect=detect_no_cardioversion_warning,
        description="Did not prepare family for cardioversion",
        teaching_point=(
            "Cardioversion looks violent - the body jumps. "
            "Unprepared families may think you're hurting their child."
        ),
        alternatives=(
            Alternative(
                action="Explain cardioversion before shocking",
                rationale="Family understands the body movement is expected",
                expected_outcome="Family tense but not horrified",
                is_preferred_practice=True,
            ),
        ),
        expert_would_say=(
            "Mr. Henderson, we're going to reset her heart with a small electrical pulse. "
            "She's sedated so she won't feel it. You'll see her body jump - that's normal."
        ),
    ),
    PivotRule(
        id="no_post_conversion_ack",
        name="No Post-Conversion Acknowledgment",
        type=PivotType.MISSED_OPPORTUNITY,
        impact=Impact.LOW,
        detect=detect_no_post_conversion_ack,
        description="Did not celebrate success with family",
        teaching_point=(
            'After a successful intervention, explicitly telling the family "It worked!" '
            "helps them process the trauma."
        ),
        alternatives=(
            Alternative(
                action="Acknowledge success to family",
                rationale="Closure helps family process the scary experience",
                expected_outcome="Family relieved, trust rebuilt",
                is_preferred_practice=True,
            ),
        ),
        expert_would_say=(
            "Lily, you were so brave! Your heart is all better now. "
            "Mr. Henderson, she's going to be fine."
        ),
    ),
    PivotRule(
        id="dose_error_caught",
        name="Dose Error Caught by Nurse",
        type=PivotType.ERROR,
        impact=Impact.MEDIUM,
        detect=detect_dose_error_caught,
        description="Medication dose error caught by nurse",
        teaching_point="Nurses are the safety net. But errors that reach them indicate knowledge gaps.",
        alternatives=(
            Alternative(
                action="Calculate dose correctly",
                rationale="Weight-based dosing is a core resuscitation skill",
                expected_outcome="Correct dose given without nurse intervention",
                is_preferred_practice=True,
            ),
        ),
    ),
    PivotRule(
        id="significant_underdose",
        name="Significant Underdosing",
        type=PivotType.ERROR,
        impact=Impact.HIGH,
        detect=detect_significant_underdose,
        description="Administered significantly underdosed medication",
        teaching_point=(
            "Underdosing reduces efficacy. Adenosine needs adequate dose "
            "to terminate re-entry circuit."
        ),
        alternatives=(
            Alternative(
                action="Use correct weight-based dose",
                rationale="0.1 mg/kg first dose, 0.2 mg/kg second dose",
                expected_outcome="Optimal chance of conversion",
                is_preferred_practice=True,
            ),
        ),
    ),
    PivotRule(
        id="good_warning_given",
        name="Effective Pre-Asystole Warning",
        type=PivotType.SUCCESS,
        impact=Impact.HIGH,
        detect=detect_good_warning_given,
        description="Successfully warned family before adenosine-induced asystole",
        teaching_point=(
            "This is exactly right. Anticipatory guidance transforms a terrifying moment "
            "into an expected one."
        ),
    ),
)


# =============================================================================
# Identification
# =============================================================================


def identify_pivot_points(
    timeline: Sequence[TimelineEvent],
    windows: Sequence[CommunicationWindow],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[PivotPoint]:
    """
    Identify pivot points in the timeline.

    Every rule runs; more than one may fire. A rule that lacks the
    evidence it needs simply does not fire.

    Args:
        timeline: Sorted timeline events
        windows: Detected communication windows
        config: Evaluation configuration

    Returns:
        Pivots stably sorted by impact, critical first
    """
    pivots = []

    for rule in PIVOT_RULES:
        detection = rule.detect(timeline, windows, config)
        if detection is None:
            continue

        logger.debug("Pivot detected", rule=rule.id, timestamp=detection.timestamp)

        pivots.append(PivotPoint(
            id=rule.pivot_id,
            timestamp=detection.timestamp,
            type=rule.type,
            impact=rule.impact,
            description=rule.description,
            decision=detection.decision,
            alternatives=[a.model_copy() for a in rule.alternatives],
            actual_outcome=detection.actual_outcome,
            affected_characters=list(detection.affected_characters),
            state_impact=StateImpact(
                mark_anxiety_delta=detection.mark_anxiety_delta,
                lily_fear_delta=detection.lily_fear_delta,
            ),
            teaching_point=rule.teaching_point,
            expert_would_say=rule.expert_would_say,
        ))

    return sorted(pivots, key=lambda p: IMPACT_RANK[p.impact])


def get_most_critical_pivot(pivots: Sequence[PivotPoint]) -> PivotPoint | None:
    """Get the single pivot the debrief should focus on."""
    critical_missed = next(
        (
            p for p in pivots
            if p.impact == Impact.CRITICAL and p.type == PivotType.MISSED_OPPORTUNITY
        ),
        None,
    )
    if critical_missed is not None:
        return critical_missed

    return pivots[0] if pivots else None


def get_successes(pivots: Sequence[PivotPoint]) -> list[PivotPoint]:
    """Pivots worth positive reinforcement."""
    return [p for p in pivots if p.type == PivotType.SUCCESS]


def get_errors(pivots: Sequence[PivotPoint]) -> list[PivotPoint]:
    """Errors and missed opportunities."""
    return [p for p in pivots if p.type in (PivotType.ERROR, PivotType.MISSED_OPPORTUNITY)]
