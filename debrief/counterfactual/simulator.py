"""
Counterfactual generation.

For each pivot with a matching model, pairs the measured outcome with
the modelled alternative and places a concrete intervention shortly
before the pivot.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.counterfactual.library import COUNTERFACTUAL_MODELS
from debrief.counterfactual.models import CounterfactualModel
from debrief.models.evaluation import (
    Counterfactual,
    InterventionSpec,
    OutcomeProjection,
    PivotPoint,
)
from debrief.models.timeline import TimelineEvent

logger = structlog.get_logger(__name__)


def simulate_counterfactual(
    model: CounterfactualModel,
    pivot: PivotPoint,
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> Counterfactual:
    """Evaluate one counterfactual model against the timeline."""
    return Counterfactual(
        pivot_id=pivot.id,
        actual=OutcomeProjection(
            mark_anxiety_peak=model.actual.mark_anxiety_peak(timeline),
            lily_fear_peak=model.actual.lily_fear_peak(timeline),
            trust_delta=model.actual.trust_delta,
            outcome=model.actual.outcome,
        ),
        alternative=OutcomeProjection(
            mark_anxiety_peak=model.alternative.mark_anxiety_peak,
            lily_fear_peak=model.alternative.lily_fear_peak,
            trust_delta=model.alternative.trust_delta,
            outcome=model.alternative.outcome,
        ),
        intervention=InterventionSpec(
            timestamp=pivot.timestamp - config.intervention_lead_ms,
            action=model.intervention.action,
            exact_words=model.intervention.exact_words,
        ),
        difference_narrative=model.difference_narrative,
    )


def generate_counterfactuals(
    pivots: Sequence[PivotPoint],
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[Counterfactual]:
    """
    Generate counterfactuals for detected pivot points.

    Pivots without a model are skipped.

    Args:
        pivots: Detected pivot points
        timeline: Sorted timeline events
        config: Evaluation configuration

    Returns:
        Counterfactuals in pivot order
    """
    counterfactuals = []

    for pivot in pivots:
        model = COUNTERFACTUAL_MODELS.get(pivot.id)
        if model is None:
            continue

        cf = simulate_counterfactual(model, pivot, timeline, config)
        logger.debug(
            "Counterfactual generated",
            pivot=pivot.id,
            intervention_at=cf.intervention.timestamp,
        )
        counterfactuals.append(cf)

    return counterfactuals


def impact_score(cf: Counterfactual) -> float:
    """Total state difference between actual and alternative; trust counts double."""
    return (
        abs(cf.actual.mark_anxiety_peak - cf.alternative.mark_anxiety_peak)
        + abs(cf.actual.lily_fear_peak - cf.alternative.lily_fear_peak)
        + abs(cf.actual.trust_delta - cf.alternative.trust_delta) * 2
    )


def get_most_impactful_counterfactual(counterfactuals: Sequence[Counterfactual]) -> Counterfactual | None:
    """Get the counterfactual with the biggest difference. Ties keep input order."""
    if not counterfactuals:
        return None
    return max(counterfactuals, key=impact_score)


def calculate_preventability_score(cf: Counterfactual) -> float:
    """
    How much of the harm could have been prevented, from 0 to 100.

    Differences are signed, so an alternative that is worse than what
    happened lowers the score rather than raising it.
    """
    anxiety_prevented = cf.actual.mark_anxiety_peak - cf.alternative.mark_anxiety_peak
    fear_prevented = cf.actual.lily_fear_peak - cf.alternative.lily_fear_peak
    trust_saved = cf.alternative.trust_delta - cf.actual.trust_delta

    score = (anxiety_prevented + fear_prevented) * 15 + trust_saved * 20
    return max(0.0, min(100.0, score))


def format_counterfactual_compact(cf: Counterfactual) -> str:
    """One-glance actual vs alternative summary."""
    return (
        f"**Actual:** {cf.actual.outcome}\n"
        f"**With intervention:** {cf.alternative.outcome}\n"
        f'**The fix:** "{cf.intervention.exact_words or cf.intervention.action}"'
    )
