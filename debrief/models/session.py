"""Raw session records handed over by the simulation session."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from debrief.models.base import DebriefModel
from debrief.models.snapshot import StateSnapshot


class Speaker(str, Enum):
    """Who authored a chat message."""

    LILY = "lily"
    MARK = "mark"
    NURSE = "nurse"
    DOCTOR = "doctor"
    SYSTEM = "system"


class ActionResult(str, Enum):
    """Outcome of an executed intervention."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class Message(DebriefModel):
    """A chat message. `time` is wall-clock epoch milliseconds."""

    who: Speaker
    text: str
    time: int


class ActionLogEntry(DebriefModel):
    """An ordered intervention. `time` is simulation milliseconds."""

    type: str
    time: int
    executed: bool = True
    given: float | None = None
    correct: float | None = None
    unit: str | None = None
    attempt_num: int | None = None
    result: ActionResult | None = None


class NurseCatch(DebriefModel):
    """An out-of-policy order intercepted by the nurse before execution."""

    drug: str
    attempted: float
    unit: str
    reason: str
    time: int


class ReconstructionInput(DebriefModel):
    """
    Everything recorded during one training session.

    This is the single input to the evaluation engine.
    """

    messages: list[Message] = Field(default_factory=list)
    action_log: list[ActionLogEntry] = Field(default_factory=list)
    nurse_catches: list[NurseCatch] = Field(default_factory=list)
    state_snapshots: list[StateSnapshot] = Field(default_factory=list)

    # Epoch ms at which the session started; messages are offset by it
    start_time: int = 0
