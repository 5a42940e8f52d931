"""
Counterfactual model definitions.

A counterfactual model pairs what actually happened after a pivot
(measured from the timeline) with a hand-authored projection of what
would have happened had the learner intervened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from debrief.models.snapshot import SimPhase
from debrief.models.timeline import TimelineEvent

PeakFunction = Callable[[Sequence[TimelineEvent]], float]


@dataclass(frozen=True)
class ActualModel:
    """How to measure the real outcome from the timeline."""

    mark_anxiety_peak: PeakFunction
    lily_fear_peak: PeakFunction
    trust_delta: float
    outcome: str


@dataclass(frozen=True)
class AlternativeModel:
    """Projected outcome with the intervention. Not computed."""

    mark_anxiety_peak: float
    lily_fear_peak: float
    trust_delta: float
    outcome: str


@dataclass(frozen=True)
class InterventionTemplate:
    timing: str  # Human-readable placement, e.g. "Before delivering shock"
    action: str
    exact_words: str


@dataclass(frozen=True)
class CounterfactualModel:
    pivot_id: str
    actual: ActualModel
    alternative: AlternativeModel
    intervention: InterventionTemplate
    difference_narrative: str


def peak_anxiety(floor: float, phase: Optional[SimPhase] = None) -> PeakFunction:
    """
    Peak of Mark's anxiety over the timeline, never below `floor`.

    With a phase, only events whose after-state is in that phase count.
    """
    def measure(timeline: Sequence[TimelineEvent]) -> float:
        values = [
            e.state_after.mark_anxiety for e in timeline
            if phase is None or e.state_after.phase == phase
        ]
        return max([*values, floor])

    return measure


def peak_fear(floor: float, phase: Optional[SimPhase] = None) -> PeakFunction:
    """Peak of Lily's fear over the timeline, never below `floor`."""
    def measure(timeline: Sequence[TimelineEvent]) -> float:
        values = [
            e.state_after.lily_fear for e in timeline
            if phase is None or e.state_after.phase == phase
        ]
        return max([*values, floor])

    return measure


def constant(value: float) -> PeakFunction:
    """A peak that does not depend on the timeline."""
    return lambda _timeline: value
