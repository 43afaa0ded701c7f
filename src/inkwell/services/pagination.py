"""Lenient page-window parsing and pagination metadata."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from inkwell.core.errors import ValidationError
from inkwell.core.settings import settings
from inkwell.schemas.common import PaginationMeta

__all__ = ["PageWindow", "build_pagination", "parse_positive_int"]


def parse_positive_int(raw: Any, default: int) -> int:
    """Return ``raw`` as a positive integer, or ``default`` if it is not one.

    Query strings arrive as text; anything that is not a whole number
    greater than zero (``"abc"``, ``"0"``, ``"-3"``, ``"2.5"``) falls back
    to the default instead of failing the request.
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class PageWindow:
    """A resolved ``page``/``limit`` pair."""

    page: int
    limit: int

    @classmethod
    def from_raw(cls, page: Any = None, limit: Any = None, *, default_limit: int) -> PageWindow:
        """Parse raw query values, applying defaults.

        Raises:
            ValidationError: If a well-formed ``limit`` exceeds the configured
                maximum page size.
        """
        resolved_limit = parse_positive_int(limit, default_limit)
        if resolved_limit > settings.max_page_size:
            raise ValidationError.for_field(
                "limit", f"limit must not exceed {settings.max_page_size}"
            )
        return cls(page=parse_positive_int(page, 1), limit=resolved_limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_pagination(window: PageWindow, total_items: int) -> PaginationMeta:
    """Compute the metadata block that accompanies a paginated listing."""
    total_pages = math.ceil(total_items / window.limit) if total_items else 0
    return PaginationMeta(
        current_page=window.page,
        total_pages=total_pages,
        total_items=total_items,
        has_next_page=window.page < total_pages,
        has_prev_page=window.page > 1,
    )
