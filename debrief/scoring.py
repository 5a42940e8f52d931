"""
Session scoring and cross-session trajectory.

Scores are on a 1-5 scale. Clinical score reflects dosing and protocol
adherence; communication score reflects the windows the learner missed.
"""

from __future__ import annotations

import math
from statistics import mean
from typing import Sequence

from debrief.models.evaluation import (
    CommunicationWindow,
    Impact,
    PivotPoint,
    Scores,
    SessionRecord,
    Trajectory,
)

SCORE_BASELINE = 4.0
SCORE_MIN = 1.0
SCORE_MAX = 5.0

DOSE_ERROR_PENALTY = 0.5
SKIPPED_VAGAL_PENALTY = 0.3
MISSED_CRITICAL_WINDOW_PENALTY = 1.5
MISSED_HIGH_WINDOW_PENALTY = 0.5

CLINICAL_WEIGHT = 0.4
COMMUNICATION_WEIGHT = 0.6

# Overall-score change vs. prior sessions that counts as movement
PLATEAU_BAND = 0.3
RAPID_IMPROVEMENT = 1.0


def _clamp(value: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def round_score(value: float) -> float:
    """Round half up to one decimal."""
    return math.floor(value * 10 + 0.5) / 10


def clinical_score(pivots: Sequence[PivotPoint]) -> float:
    dose_errors = sum(1 for p in pivots if "underdose" in p.id or "overdose" in p.id)
    skipped_vagal = any(p.id == "pivot_skipped_vagal" for p in pivots)

    score = SCORE_BASELINE - dose_errors * DOSE_ERROR_PENALTY
    if skipped_vagal:
        score -= SKIPPED_VAGAL_PENALTY
    return _clamp(score)


def communication_score(windows: Sequence[CommunicationWindow]) -> float:
    missed = [w for w in windows if w.was_missed]
    critical = sum(1 for w in missed if w.impact == Impact.CRITICAL)
    high = sum(1 for w in missed if w.impact == Impact.HIGH)

    score = (
        SCORE_BASELINE
        - critical * MISSED_CRITICAL_WINDOW_PENALTY
        - high * MISSED_HIGH_WINDOW_PENALTY
    )
    return _clamp(score)


def calculate_scores(
    pivots: Sequence[PivotPoint],
    windows: Sequence[CommunicationWindow],
) -> Scores:
    """
    Reduce pivots and windows to clinical, communication and overall scores.

    The overall score is weighted toward communication and is computed
    from the unrounded component scores.
    """
    clinical = clinical_score(pivots)
    communication = communication_score(windows)
    overall = clinical * CLINICAL_WEIGHT + communication * COMMUNICATION_WEIGHT

    return Scores(
        clinical=round_score(clinical),
        communication=round_score(communication),
        overall=round_score(overall),
    )


def calculate_trajectory(
    scores: Scores,
    history: Sequence[SessionRecord] = (),
) -> Trajectory:
    """
    Place this session's scores in the context of earlier sessions.

    Args:
        scores: Scores for the current session
        history: Records of earlier sessions, supplied by the caller

    Returns:
        Trajectory with session count, improvement trend and rate limiter
    """
    improvement = "plateau"
    if history:
        delta = scores.overall - mean(r.scores.overall for r in history)
        if delta <= -PLATEAU_BAND:
            improvement = "declining"
        elif delta < PLATEAU_BAND:
            improvement = "plateau"
        elif delta < RAPID_IMPROVEMENT:
            improvement = "improving"
        else:
            improvement = "rapid_improvement"

    if scores.communication < scores.clinical:
        rate_limiter = "communication"
    elif scores.clinical < scores.communication:
        rate_limiter = "clinical"
    else:
        rate_limiter = "neither"

    return Trajectory(
        sessions_completed=len(history) + 1,
        improvement=improvement,
        rate_limiter=rate_limiter,
    )
