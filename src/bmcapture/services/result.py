"""ServiceResult and ServiceError: what every CLI command emits.

Each context (popup, options page, relay) reports its terminal state as a
ServiceResult so the output layer can render it for humans or as JSON.
Error codes are the upper-cased APIOutcome kinds plus ``NOT_CONFIGURED``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from bmcapture.domain.outcomes import APIOutcome


class ErrorCode(StrEnum):
    """``ServiceError.code`` values."""

    NOT_CONFIGURED = "NOT_CONFIGURED"
    AUTH_ERROR = "AUTH_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    LOAD_ERROR = "LOAD_ERROR"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Terminal report of one context invocation.

    Attributes:
        ok: Whether the operation succeeded. A duplicate counts as success.
        op: Which command produced it (``popup``, ``options_save``, ...).
        data: Operation-specific payload, present on failure too.
        warnings: Non-fatal notes, such as a duplicate bookmark.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def success(
        cls,
        op: str,
        data: dict[str, Any] | None = None,
        *,
        warnings: list[str] | None = None,
    ) -> ServiceResult:
        return cls(ok=True, op=op, data=data or {}, warnings=warnings or [])

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        detail: dict[str, Any] | None = None,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            data=data or {},
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )

    @classmethod
    def from_outcome(
        cls,
        op: str,
        outcome: APIOutcome,
        data: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """Map a save/test outcome: duplicate is a warning, not a failure."""
        from bmcapture.domain.outcomes import OutcomeKind

        if outcome.ok:
            return cls.success(op, data)
        if outcome.kind is OutcomeKind.DUPLICATE:
            return cls.success(op, data, warnings=[outcome.message])
        detail = {"status": outcome.status} if outcome.status else None
        return cls.failure(op, outcome.error_code, outcome.message, data=data, detail=detail)
