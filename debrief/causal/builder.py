"""
Causal chain construction.

Expands the template for each detected trigger pivot into a chain of
cause -> effect links anchored, where possible, to real timeline events.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from debrief.causal.templates import CHAIN_TEMPLATES, ChainTemplate
from debrief.config import DEFAULT_CONFIG, EvaluationConfig
from debrief.models.evaluation import Breakpoint, CausalChain, CausalLink, PivotPoint
from debrief.models.timeline import EventType, TimelineEvent

logger = structlog.get_logger(__name__)


def synthetic_event_id(index: int) -> str:
    """Placeholder id for a chain step with no matching timeline event."""
    return f"synthetic_{index}"


def find_relevant_events(
    timeline: Sequence[TimelineEvent],
    pivot: PivotPoint,
    template: ChainTemplate,
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[TimelineEvent]:
    """Real events that anchor the template's steps, in link order."""
    if template.scan is None:
        return []
    return template.scan(timeline, pivot)[:config.max_relevant_events]


def find_root_cause_event_id(
    timeline: Sequence[TimelineEvent],
    pivot: PivotPoint,
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> str:
    """
    Find the event that best represents the pivot's decision.

    Prefers the nearest action within the root-cause window, then the
    nearest event of any type within it. Ties keep timeline order.
    """
    nearby = [
        e for e in timeline
        if abs(e.timestamp - pivot.timestamp) < config.root_cause_window_ms
    ]
    if not nearby:
        return "unknown"

    def distance(event: TimelineEvent) -> int:
        return abs(event.timestamp - pivot.timestamp)

    actions = [e for e in nearby if e.type == EventType.ACTION]
    # min() returns the first of equally near candidates
    return min(actions or nearby, key=distance).id


def build_chain(
    template: ChainTemplate,
    pivot: PivotPoint,
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> CausalChain:
    """
    Expand one template for its trigger pivot.

    The chain always has exactly as many links as the template declares;
    steps without a real event fall back to synthetic placeholder ids.
    """
    relevant = find_relevant_events(timeline, pivot, template, config)

    def step_id(index: int) -> str:
        if index < len(relevant):
            return relevant[index].id
        return synthetic_event_id(index)

    links = [
        CausalLink(
            from_event_id=step_id(index),
            to_event_id=step_id(index + 1),
            mechanism=link.mechanism,
        )
        for index, link in enumerate(template.links)
    ]

    return CausalChain(
        id=template.id,
        name=template.name,
        root_cause_event_id=find_root_cause_event_id(timeline, pivot, config),
        links=links,
        final_effect=template.final_effect,
        breakpoints=[
            Breakpoint(
                after_event_id=relevant[0].id if relevant else "root",
                intervention=template.breakpoint.intervention,
                alternative_chain=template.breakpoint.alternative_outcome,
            ),
        ],
        narrative_summary=template.narrative,
    )


def build_causal_chains(
    pivots: Sequence[PivotPoint],
    timeline: Sequence[TimelineEvent],
    config: EvaluationConfig = DEFAULT_CONFIG,
) -> list[CausalChain]:
    """
    Build causal chains for the detected pivot points.

    Each triggering pivot gets its `causal_chain_id` set to the id of
    the chain it produced.

    Args:
        pivots: Detected pivot points
        timeline: Sorted timeline events
        config: Evaluation configuration

    Returns:
        Chains in template order
    """
    chains = []

    for template in CHAIN_TEMPLATES:
        pivot = next((p for p in pivots if p.id == template.trigger_pivot_id), None)
        if pivot is None:
            continue

        chain = build_chain(template, pivot, timeline, config)
        pivot.causal_chain_id = chain.id

        logger.debug(
            "Causal chain built",
            chain=chain.id,
            pivot=pivot.id,
            root_cause=chain.root_cause_event_id,
        )
        chains.append(chain)

    return chains


def get_most_impactful_chain(chains: Sequence[CausalChain]) -> CausalChain | None:
    """Get the chain to focus the debrief on: longest, with trauma weighted double."""
    if not chains:
        return None
    return max(chains, key=lambda c: len(c.links) * (2 if "trauma" in c.id else 1))


def format_chain_for_display(chain: CausalChain) -> str:
    """Render the chain's mechanisms as a vertical flow."""
    return "\n  ↓\n".join(link.mechanism for link in chain.links)


def get_breakpoint_intervention(chain: CausalChain) -> str:
    """What could have broken the chain."""
    if not chain.breakpoints:
        return "No clear intervention identified"
    return chain.breakpoints[0].intervention
