"""Shared pydantic base for debrief models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DebriefModel(BaseModel):
    """
    Base model for every debrief entity.

    Fields are snake_case in Python but validate from (and dump to) the
    camelCase names the simulator session and the debrief UI use.
    TimelineEvent metadata keys follow the same rule.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )
