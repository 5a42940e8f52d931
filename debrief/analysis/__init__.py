"""Pivot point analysis: the decision moments that matter most for learning."""

from debrief.analysis.pivots import (
    identify_pivot_points,
    get_most_critical_pivot,
    get_successes,
    get_errors,
    PivotRule,
    Detection,
    PIVOT_RULES,
)

__all__ = [
    "identify_pivot_points",
    "get_most_critical_pivot",
    "get_successes",
    "get_errors",
    "PivotRule",
    "Detection",
    "PIVOT_RULES",
]
