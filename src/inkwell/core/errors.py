"""Domain error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable ``kind`` and the HTTP status the
API maps it to. Services raise these; ``inkwell.main`` installs the handlers
that render them as ``{"kind", "message", "details"}`` bodies.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all errors surfaced to API callers."""

    kind: str = "internal"
    status_code: int = 500

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        """Return the public representation of the error."""
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationError(DomainError):
    """Malformed or out-of-range input that the caller can correct."""

    kind = "validation_error"
    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        """Build an error pointing at a single offending field."""
        return cls(message, details=[{"field": field, "message": message}])


class NotFoundError(DomainError):
    """Referenced entity is absent or not visible to the caller."""

    kind = "not_found"
    status_code = 404


class ForbiddenError(DomainError):
    """Caller is authenticated but does not own the target entity."""

    kind = "forbidden"
    status_code = 403


class UnauthenticatedError(DomainError):
    """Credential missing or invalid where one is required."""

    kind = "unauthenticated"
    status_code = 401


class ConflictError(DomainError):
    """Unique constraint violation such as a duplicate username."""

    kind = "conflict"
    status_code = 409


class InternalError(DomainError):
    """Unexpected store or infrastructure failure."""

    kind = "internal"
    status_code = 500


# Maps bare HTTP statuses (e.g. from starlette's HTTPException) onto kinds.
KIND_BY_STATUS: dict[int, str] = {
    400: ValidationError.kind,
    401: UnauthenticatedError.kind,
    403: ForbiddenError.kind,
    404: NotFoundError.kind,
    405: "method_not_allowed",
    409: ConflictError.kind,
    413: ValidationError.kind,
    422: ValidationError.kind,
}


def kind_for_status(status_code: int) -> str:
    """Return the error kind for an HTTP status code."""
    if status_code in KIND_BY_STATUS:
        return KIND_BY_STATUS[status_code]
    return InternalError.kind if status_code >= 500 else "error"
