"""Physiological and emotional state snapshots."""

from __future__ import annotations

from enum import Enum

from pydantic import Field, computed_field

from debrief.models.base import DebriefModel


class SimPhase(str, Enum):
    """Phase of the simulation state machine."""

    IDLE = "IDLE"
    RUNNING = "RUNNING"
    ASYSTOLE = "ASYSTOLE"
    CONVERTED = "CONVERTED"


class Rhythm(str, Enum):
    """Cardiac rhythm shown on the monitor."""

    SVT = "SVT"
    SINUS = "SINUS"
    ASYSTOLE = "ASYSTOLE"


class Vitals(DebriefModel):
    """Monitor vitals at a point in time."""

    hr: int
    spo2: int
    bp: str  # systolic/diastolic, e.g. "92/64"
    rr: int


class StateSnapshot(DebriefModel):
    """
    Complete snapshot of simulation state at a moment in time.

    Snapshots are produced upstream by the physiology kernel and are
    used for before/after comparison and trajectory analysis.
    """

    timestamp: int  # ms from session start

    # Simulation state
    phase: SimPhase
    rhythm: Rhythm
    vitals: Vitals

    # Treatment state
    sedated: bool = False
    adenosine_count: int = 0
    cardioversion_count: int = 0

    # Character emotional state
    mark_anxiety: int = Field(default=3, ge=0, le=5)
    lily_fear: int = Field(default=4, ge=0, le=5)

    @computed_field
    @property
    def in_crisis(self) -> bool:
        """True during asystole or when the heart rate reads zero."""
        return self.phase == SimPhase.ASYSTOLE or self.vitals.hr == 0


def baseline_snapshot(timestamp: int) -> StateSnapshot:
    """Default pre-treatment state: a stable child in SVT at 220 bpm."""
    return StateSnapshot(
        timestamp=timestamp,
        phase=SimPhase.IDLE,
        rhythm=Rhythm.SVT,
        vitals=Vitals(hr=220, spo2=97, bp="92/64", rr=26),
        sedated=False,
        adenosine_count=0,
        cardioversion_count=0,
        mark_anxiety=3,
        lily_fear=4,
    )
