"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(CamelModel):
    """Page-window metadata returned alongside every paginated listing."""

    current_page: int
    total_pages: int
    total_items: int
    has_next_page: bool
    has_prev_page: bool


class MessageResponse(CamelModel):
    """Acknowledgement body for mutations that return no entity."""

    message: str


class ErrorResponse(CamelModel):
    """Uniform error body produced by the exception handlers."""

    kind: str = Field(..., description="Stable machine-readable error kind")
    message: str = Field(..., description="Human-readable explanation")
    details: list[dict[str, Any]] = Field(default_factory=list)
    trace: str | None = Field(None, description="Traceback, only in debug mode")
