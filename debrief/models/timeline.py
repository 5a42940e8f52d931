"""Unified timeline event models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field, FieldSerializationInfo, field_serializer, field_validator
from pydantic.alias_generators import to_camel, to_snake

from debrief.models.base import DebriefModel
from debrief.models.snapshot import StateSnapshot


class EventType(str, Enum):
    """Classification of events in the timeline."""

    ACTION = "action"                          # Learner performed an intervention
    COMMUNICATION = "communication"            # Learner spoke to family/team
    CHARACTER_RESPONSE = "character_response"  # Lily, Mark or the nurse spoke
    STATE_CHANGE = "state_change"              # Phase or emotional state changed
    NURSE_CATCH = "nurse_catch"                # Nurse prevented an error
    SYSTEM = "system"                          # System message


class EventActor(str, Enum):
    """Who an event is attributed to."""

    LEARNER = "learner"
    NURSE = "nurse"
    LILY = "lily"
    MARK = "mark"
    SYSTEM = "system"


class StateTrigger(str, Enum):
    """Why a state_change event was synthesized."""

    PHASE_CHANGE = "phase_change"
    ANXIETY_SPIKE = "anxiety_spike"
    FEAR_SPIKE = "fear_spike"


class TimelineEvent(DebriefModel):
    """
    A single event in the session timeline.

    Rich enough to reconstruct what happened and analyze decisions:
    every event carries the state on either side of it.
    """

    id: str
    timestamp: int  # ms from session start

    type: EventType
    actor: EventActor
    content: str

    # State context
    state_before: StateSnapshot
    state_after: StateSnapshot

    # addressed_to, was_explanatory, intervention, dose, correct, unit,
    # result, reason, trigger
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("metadata", mode="before")
    @classmethod
    def _snake_case_metadata(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {to_snake(key): item for key, item in value.items()}
        return value

    @field_serializer("metadata")
    def _serialize_metadata(self, metadata: dict[str, Any], info: FieldSerializationInfo) -> dict[str, Any]:
        # Keys follow the same casing as the field names
        if info.by_alias:
            return {to_camel(key): item for key, item in metadata.items()}
        return metadata

    @property
    def intervention(self) -> str | None:
        return self.metadata.get("intervention")

    def is_action(self, intervention: str) -> bool:
        """Check whether this is a learner action of the given kind."""
        return self.type == EventType.ACTION and self.intervention == intervention

    def is_learner_communication(self) -> bool:
        return self.actor == EventActor.LEARNER and self.type == EventType.COMMUNICATION
