"""Evaluation configuration: the domain constants the detectors share."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping

import structlog

logger = structlog.get_logger(__name__)

ENV_PREFIX = "DEBRIEF_"


@dataclass(frozen=True)
class EvaluationConfig:
    """
    Configuration for a debrief evaluation.

    Every value is in logical simulation milliseconds or is a unitless
    threshold. Nothing here is read from the wall clock.
    """

    # Counterfactual interventions are placed this long before the pivot
    # (the time between pushing adenosine and asystole appearing)
    intervention_lead_ms: int = 6000

    # Root-cause search radius around a pivot
    root_cause_window_ms: int = 2000

    # Adenosine given / correct below this ratio is a significant underdose
    underdose_ratio_threshold: float = 0.7

    # Snapshot diffs that count as emotional spikes
    anxiety_spike_threshold: int = 2
    fear_spike_threshold: int = 1

    # Fixed-length communication windows
    post_conversion_window_ms: int = 15000
    initial_reassurance_window_ms: int = 30000

    # Learner silence longer than this is reported as a gap
    silence_gap_ms: int = 5000

    # Causal chains anchor at most this many real events
    max_relevant_events: int = 3

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EvaluationConfig":
        """
        Build a config from DEBRIEF_* environment variables.

        For example DEBRIEF_INTERVENTION_LEAD_MS=5000 overrides
        intervention_lead_ms. Unset variables keep their defaults.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EvaluationConfig with overrides applied
        """
        environ = os.environ if environ is None else environ
        overrides = {}

        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}{f.name.upper()}")
            if raw is None:
                continue

            default = getattr(DEFAULT_CONFIG, f.name)
            try:
                overrides[f.name] = type(default)(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}") from None

        if overrides:
            logger.debug("Evaluation config overrides loaded", **overrides)

        return replace(DEFAULT_CONFIG, **overrides)


DEFAULT_CONFIG = EvaluationConfig()
