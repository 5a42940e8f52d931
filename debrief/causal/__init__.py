"""
Causal chain tracing.

Explains how a detected decision cascaded into consequences, and
where the cascade could have been broken.
"""

from debrief.causal.templates import ChainTemplate, CHAIN_TEMPLATES
from debrief.causal.builder import (
    build_causal_chains,
    build_chain,
    find_root_cause_event_id,
    get_most_impactful_chain,
    format_chain_for_display,
    get_breakpoint_intervention,
)

__all__ = [
    "ChainTemplate",
    "CHAIN_TEMPLATES",
    "build_causal_chains",
    "build_chain",
    "find_root_cause_event_id",
    "get_most_impactful_chain",
    "format_chain_for_display",
    "get_breakpoint_intervention",
]
