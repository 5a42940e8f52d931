"""
Counterfactual analysis for the debrief.

Answers "what if the learner had intervened?" for each pivot that has a
model, and formats the full debrief as a report.
"""

from .models import (
    ActualModel,
    AlternativeModel,
    InterventionTemplate,
    CounterfactualModel,
)
from .library import COUNTERFACTUAL_MODELS
from .simulator import (
    generate_counterfactuals,
    simulate_counterfactual,
    get_most_impactful_counterfactual,
    calculate_preventability_score,
    format_counterfactual_compact,
)
from .report import format_debrief_report

__all__ = [
    "ActualModel",
    "AlternativeModel",
    "InterventionTemplate",
    "CounterfactualModel",
    "COUNTERFACTUAL_MODELS",
    "generate_counterfactuals",
    "simulate_counterfactual",
    "get_most_impactful_counterfactual",
    "calculate_preventability_score",
    "format_counterfactual_compact",
    "format_debrief_report",
]
