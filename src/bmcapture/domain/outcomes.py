"""APIOutcome: the classified result of every remote API call.

INVARIANT: The API client returns exactly one APIOutcome per call and
never lets a transport fault escape. Every context maps outcomes to its
own state and a user-facing message; no outcome is silently dropped.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel

AUTH_ERROR_MESSAGE = "Invalid API key. Please check and try again."
CONNECT_ERROR_MESSAGE = "Could not connect to server. Check the URL and try again."
TIMEOUT_ERROR_MESSAGE = "Request timed out. Check the URL and try again."
NON_JSON_MESSAGE = "Server returned non-JSON response. Check server configuration."
DUPLICATE_MESSAGE = "Bookmark already exists"
NON_ASCII_KEY_MESSAGE = "API key may only contain ASCII characters"


class OutcomeKind(StrEnum):
    """Variant tag of an APIOutcome."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    AUTH_ERROR = "auth_error"
    PROTOCOL_ERROR = "protocol_error"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    VALIDATION_ERROR = "validation_error"


# Outcomes the relay logs as failures. Everything else is expected or
# attributable to user input.
FAILURE_KINDS = frozenset({OutcomeKind.NETWORK_ERROR, OutcomeKind.SERVER_ERROR})


class APIOutcome(BaseModel):
    """Tagged variant over the observable results of an API call.

    Attributes:
        kind: Which variant this is.
        payload: Decoded ``data`` of a successful response.
        message: User-facing message (empty on success).
        status: HTTP status when a response was received.
    """

    model_config = {"frozen": True}

    kind: OutcomeKind
    payload: Any = None
    message: str = ""
    status: int | None = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def is_failure(self) -> bool:
        """True for outcomes worth logging as failures (network/server)."""
        return self.kind in FAILURE_KINDS

    @property
    def error_code(self) -> str:
        """Upper-case code used in ServiceError payloads."""
        return self.kind.value.upper()

    # -- constructors ---------------------------------------------------

    @classmethod
    def success(cls, payload: Any = None, *, status: int | None = 200) -> APIOutcome:
        return cls(kind=OutcomeKind.SUCCESS, payload=payload, status=status)

    @classmethod
    def duplicate(cls, message: str = DUPLICATE_MESSAGE, *, status: int = 409) -> APIOutcome:
        return cls(kind=OutcomeKind.DUPLICATE, message=message, status=status)

    @classmethod
    def auth_error(cls, *, status: int = 401) -> APIOutcome:
        return cls(kind=OutcomeKind.AUTH_ERROR, message=AUTH_ERROR_MESSAGE, status=status)

    @classmethod
    def protocol_error(cls, message: str, *, status: int | None = None) -> APIOutcome:
        return cls(kind=OutcomeKind.PROTOCOL_ERROR, message=message, status=status)

    @classmethod
    def network_error(cls, message: str = CONNECT_ERROR_MESSAGE) -> APIOutcome:
        return cls(kind=OutcomeKind.NETWORK_ERROR, message=message)

    @classmethod
    def server_error(cls, status: int, message: str | None = None) -> APIOutcome:
        return cls(
            kind=OutcomeKind.SERVER_ERROR,
            message=message or f"Server returned error: {status}",
            status=status,
        )

    @classmethod
    def validation_error(cls, message: str, *, status: int | None = None) -> APIOutcome:
        return cls(kind=OutcomeKind.VALIDATION_ERROR, message=message, status=status)
