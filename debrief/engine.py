"""Main debrief evaluation engine."""

from __future__ import annotations

import time
from typing import Any, Mapping, Sequence

import structlog

from debrief.analysis.pivots import get_most_critical_pivot, identify_pivot_points
from debrief.causal.builder import build_causal_chains, get_most_impactful_chain
from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.counterfactual.simulator import (
    generate_counterfactuals,
    get_most_impactful_counterfactual,
)
from debrief.models.evaluation import (
    EvaluationResult,
    Impact,
    PivotalMoment,
    PivotType,
    QuickSummary,
    SessionRecord,
    TheOneThing,
)
from debrief.models.session import ReconstructionInput
from debrief.reconstruction.timeline import format_timestamp, reconstruct_timeline
from debrief.reconstruction.windows import identify_communication_windows
from debrief.scoring import calculate_scores, calculate_trajectory


logger = structlog.get_logger(__name__)


class EvaluationError(RuntimeError):
    """Raised when a debrief could not be generated from the session data."""


def new_session_id() -> str:
    return f"eval_{int(time.time() * 1000)}"


class DebriefEngine:
    """
    Main interface for post-session evaluation.

    Runs the full pipeline over one recorded session:
    - Timeline reconstruction
    - Communication window detection
    - Pivot point detection
    - Causal chain construction
    - Counterfactual generation
    - Scoring

    The engine holds configuration only. Every call recomputes all
    artifacts from its input, so re-running on the same session is safe.

    Example:
        ```python
        engine = DebriefEngine()
        result = engine.evaluate(session)
        hooks = generate_dialogue_hooks(result.pivot_points, result.counterfactuals)
        ```
    """

    def __init__(self, config: EvaluationConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def evaluate(
        self,
        data: ReconstructionInput | Mapping[str, Any],
        history: Sequence[SessionRecord] = (),
    ) -> EvaluationResult:
        """
        Run a full evaluation of one session.

        Args:
            data: Recorded session data, as a model or as raw mapping
                (camelCase or snake_case keys)
            history: Earlier session records for trajectory context

        Returns:
            The complete EvaluationResult

        Raises:
            EvaluationError: If the input is invalid or any step fails
        """
        try:
            return self._evaluate(data, history)
        except Exception as e:
            logger.error("Debrief evaluation failed", error=str(e), error_type=type(e).__name__)
            raise EvaluationError(f"Failed to generate debrief: {e}") from e

    def _evaluate(
        self,
        data: ReconstructionInput | Mapping[str, Any],
        history: Sequence[SessionRecord],
    ) -> EvaluationResult:
        if not isinstance(data, ReconstructionInput):
            data = ReconstructionInput.model_validate(data)

        config = self.config
        session_id = new_session_id()

        logger.info(
            "Starting debrief evaluation",
            session_id=session_id,
            messages=len(data.messages),
            actions=len(data.action_log),
            snapshots=len(data.state_snapshots),
        )

        timeline = reconstruct_timeline(data, config)
        windows = identify_communication_windows(timeline, config)
        pivots = identify_pivot_points(timeline, windows, config)

        # Also sets causal_chain_id on each triggering pivot
        chains = build_causal_chains(pivots, timeline, config)

        counterfactuals = generate_counterfactuals(pivots, timeline, config)

        critical_pivot = get_most_critical_pivot(pivots)
        focus_chain = get_most_impactful_chain(chains)
        critical_cf = get_most_impactful_counterfactual(counterfactuals)

        scores = calculate_scores(pivots, windows)

        logger.info(
            "Debrief evaluation complete",
            session_id=session_id,
            events=len(timeline),
            windows=len(windows),
            pivots=len(pivots),
            chains=len(chains),
            counterfactuals=len(counterfactuals),
            focus_pivot=critical_pivot.id if critical_pivot else None,
            focus_chain=focus_chain.id if focus_chain else None,
            overall=scores.overall,
        )

        return EvaluationResult(
            session_id=session_id,
            timeline=timeline,
            communication_windows=windows,
            pivot_points=pivots,
            causal_chains=chains,
            counterfactuals=counterfactuals,
            pivotal_moment=PivotalMoment(
                pivot_id=critical_pivot.id if critical_pivot else "",
                why_this_matters=critical_pivot.teaching_point if critical_pivot else "",
                the_one_insight=(critical_cf.intervention.exact_words or "") if critical_cf else "",
            ),
            the_one_thing=TheOneThing(
                behavior=critical_pivot.description if critical_pivot else "No critical issues identified",
                exact_words=(critical_pivot.expert_would_say or "") if critical_pivot else "",
                exact_moment=format_timestamp(critical_pivot.timestamp) if critical_pivot else "",
            ),
            scores=scores,
            trajectory=calculate_trajectory(scores, history),
        )


def run_evaluation(
    data: ReconstructionInput | Mapping[str, Any],
    config: EvaluationConfig | None = None,
    history: Sequence[SessionRecord] = (),
) -> EvaluationResult:
    """
    Run full evaluation on recorded session data.

    This is the main entry point for generating a debrief. It is the
    only function in the package that raises; callers should catch
    EvaluationError and may retry with the same input.
    """
    return DebriefEngine(config).evaluate(data, history=history)


def get_quick_summary(result: EvaluationResult) -> QuickSummary:
    """Headline numbers for display before the full debrief."""
    critical_issues = [
        p for p in result.pivot_points
        if p.impact == Impact.CRITICAL and p.type != PivotType.SUCCESS
    ]
    successes = [p for p in result.pivot_points if p.type == PivotType.SUCCESS]

    return QuickSummary(
        overall_score=result.scores.overall,
        clinical_score=result.scores.clinical,
        communication_score=result.scores.communication,
        critical_issue_count=len(critical_issues),
        success_count=len(successes),
        the_one_thing=result.the_one_thing.behavior,
        has_trauma=any(
            "no_warning" in p.id and p.impact == Impact.CRITICAL
            for p in result.pivot_points
        ),
    )


def to_session_record(
    result: EvaluationResult,
    scenario: str = "pediatric_svt",
    outcome: str = "incomplete",
    time_to_conversion: int | None = None,
    timestamp: int | None = None,
) -> SessionRecord:
    """
    Condense a result into a record for cross-session trajectory.

    Storing the record is left to the caller.
    """
    return SessionRecord(
        id=result.session_id,
        timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        scenario=scenario,
        outcome=outcome,
        time_to_conversion=time_to_conversion,
        pivot_point_count=len(result.pivot_points),
        critical_pivots=[p.id for p in result.pivot_points if p.impact == Impact.CRITICAL],
        missed_windows=[w.name for w in result.communication_windows if w.was_missed],
        scores=result.scores,
        the_one_thing=result.the_one_thing.behavior,
    )
