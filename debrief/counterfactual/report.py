"""
Report formatter for debrief evaluations.
"""

from typing import Sequence

from debrief.causal.builder import format_chain_for_display, get_breakpoint_intervention
from debrief.counterfactual.simulator import calculate_preventability_score
from debrief.reconstruction.timeline import format_timestamp
from debrief.models.evaluation import (
    CausalChain,
    Counterfactual,
    DialogueHook,
    EvaluationResult,
    PivotPoint,
    PivotType,
)


IMPACT_BADGES = {
    "critical": "🔴 CRITICAL",
    "high": "🟠 HIGH",
    "medium": "🟡 MEDIUM",
    "low": "⚪ LOW",
}


def format_debrief_report(
    result: EvaluationResult,
    hooks: Sequence[DialogueHook] = (),
) -> str:
    """
    Format an evaluation as a Markdown debrief report.
    """
    scores = result.scores
    lines = [
        "# Simulation Debrief",
        "",
        f"**Session:** {result.session_id}",
        f"**Events Reconstructed:** {len(result.timeline)}",
        f"**Pivot Points:** {len(result.pivot_points)}",
        "",
        "---",
        "",
        "## The One Thing",
        "",
        f"**{result.the_one_thing.behavior}**",
    ]

    if result.the_one_thing.exact_moment:
        lines.append(f"At {result.the_one_thing.exact_moment}.")
    if result.the_one_thing.exact_words:
        lines.append("")
        lines.append(f'> "{result.the_one_thing.exact_words}"')
    if result.pivotal_moment.why_this_matters:
        lines.append("")
        lines.append(result.pivotal_moment.why_this_matters)

    lines.extend([
        "",
        "## Scores",
        "",
        "| Clinical | Communication | Overall |",
        "|----------|---------------|---------|",
        f"| {scores.clinical:.1f} | {scores.communication:.1f} | {scores.overall:.1f} |",
        "",
        f"**Sessions completed:** {result.trajectory.sessions_completed} · "
        f"**Trend:** {result.trajectory.improvement} · "
        f"**Rate limiter:** {result.trajectory.rate_limiter}",
        "",
        "---",
        "",
    ])

    # Pivot points
    lines.append("## Pivot Points")
    lines.append("")
    if not result.pivot_points:
        lines.append("No pivot points detected.")
        lines.append("")
    for pivot in result.pivot_points:
        lines.extend(_format_pivot(pivot))
        lines.append("")

    # Causal chains
    if result.causal_chains:
        lines.append("## Causal Chains")
        lines.append("")
        for chain in result.causal_chains:
            lines.extend(_format_chain(chain))
            lines.append("")

    # Counterfactuals
    if result.counterfactuals:
        lines.append("## What If")
        lines.append("")
        lines.append("| Pivot | Anxiety Peak | Fear Peak | Trust | Preventability |")
        lines.append("|-------|--------------|-----------|-------|----------------|")
        for cf in result.counterfactuals:
            lines.append(_format_counterfactual_row(cf))
        lines.append("")
        for cf in result.counterfactuals:
            lines.append(f"### {cf.pivot_id}")
            lines.append("")
            lines.append(cf.difference_narrative)
            lines.append("")

    # Communication windows
    if result.communication_windows:
        lines.append("## Communication Windows")
        lines.append("")
        lines.append("| Window | Start | Duration | Impact | Missed? |")
        lines.append("|--------|-------|----------|--------|---------|")
        for window in result.communication_windows:
            missed = "❌ Missed" if window.was_missed else "✅ Used"
            lines.append(
                f"| {window.name} | {format_timestamp(window.start_timestamp)} | "
                f"{window.duration / 1000:.1f}s | {window.impact.value} | {missed} |"
            )
        lines.append("")

    # Reflection questions
    if hooks:
        lines.append("## Reflection")
        lines.append("")
        for i, hook in enumerate(hooks, 1):
            lines.append(f"{i}. {hook.question}")
            for option in hook.options:
                lines.append(f"   - {option}")
        lines.append("")

    return "\n".join(lines)


def _format_pivot(pivot: PivotPoint) -> list[str]:
    """Format a single pivot point."""
    marker = "✅" if pivot.type == PivotType.SUCCESS else IMPACT_BADGES[pivot.impact.value]
    lines = [
        f"### {marker} {pivot.description} ({format_timestamp(pivot.timestamp)})",
        "",
        f"**Decision:** {pivot.decision}",
        f"**Outcome:** {pivot.actual_outcome}",
        f"**Teaching point:** {pivot.teaching_point}",
    ]

    if pivot.expert_would_say:
        lines.append(f'**An expert would say:** "{pivot.expert_would_say}"')

    preferred = [a for a in pivot.alternatives if a.is_preferred_practice]
    if preferred:
        lines.append("")
        lines.append("**Preferred alternatives:**")
        for alt in preferred:
            lines.append(f"- {alt.action}: {alt.expected_outcome}")

    return lines


def _format_chain(chain: CausalChain) -> list[str]:
    """Format a single causal chain."""
    return [
        f"### {chain.name}",
        "",
        "```",
        format_chain_for_display(chain),
        "```",
        "",
        f"**Final effect:** {chain.final_effect}",
        f"**Break the chain:** {get_breakpoint_intervention(chain)}",
    ]


def _format_counterfactual_row(cf: Counterfactual) -> str:
    return (
        f"| {cf.pivot_id} "
        f"| {cf.actual.mark_anxiety_peak:g} → {cf.alternative.mark_anxiety_peak:g} "
        f"| {cf.actual.lily_fear_peak:g} → {cf.alternative.lily_fear_peak:g} "
        f"| {cf.actual.trust_delta:+g} → {cf.alternative.trust_delta:+g} "
        f"| {calculate_preventability_score(cf):.0f} |"
    )
