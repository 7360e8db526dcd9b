"""Shared Pydantic base model for Cyclesense schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CycleBase(BaseModel):
    """Base model with shared config for all Cyclesense schemas.

    Field names are snake_case in Python and camelCase on the wire, which
    keeps stored snapshots readable by the mobile client.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorDetail(BaseModel):
    detail: str
