"""
Debrief Evaluation Engine

Turns a recorded pediatric SVT training session into a structured
debrief: a unified timeline, communication windows, pivot points,
causal chains, counterfactuals and scores.
"""

from debrief.engine import (
    DebriefEngine,
    EvaluationError,
    run_evaluation,
    get_quick_summary,
    to_session_record,
    format_timestamp,
)
from debrief.config import EvaluationConfig, DEFAULT_CONFIG
from debrief.models.session import ReconstructionInput
from debrief.models.evaluation import EvaluationResult
from debrief.hooks import generate_dialogue_hooks, create_empty_perspectives
from debrief.counterfactual.report import format_debrief_report

__version__ = "0.1.0"

__all__ = [
    # Core
    "DebriefEngine",
    "EvaluationError",
    "run_evaluation",
    "get_quick_summary",
    "to_session_record",
    "format_timestamp",
    # Config
    "EvaluationConfig",
    "DEFAULT_CONFIG",
    # Models
    "ReconstructionInput",
    "EvaluationResult",
    # Enrichment
    "generate_dialogue_hooks",
    "create_empty_perspectives",
    "format_debrief_report",
]
