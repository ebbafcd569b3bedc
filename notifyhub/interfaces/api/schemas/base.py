"""Shared pydantic configuration for API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model exposing camelCase field names while accepting snake_case too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActionResponse(CamelModel):
    success: bool
    message: str


__all__ = ["ActionResponse", "CamelModel"]
