"""Tests for the APIOutcome variant."""

from __future__ import annotations

from bmcapture.domain.outcomes import (
    AUTH_ERROR_MESSAGE,
    DUPLICATE_MESSAGE,
    APIOutcome,
    OutcomeKind,
)


class TestAPIOutcome:
    def test_success_is_ok(self) -> None:
        outcome = APIOutcome.success({"id": 1})
        assert outcome.ok is True
        assert outcome.payload == {"id": 1}
        assert outcome.message == ""

    def test_duplicate_is_not_ok(self) -> None:
        outcome = APIOutcome.duplicate()
        assert outcome.ok is False
        assert outcome.kind is OutcomeKind.DUPLICATE
        assert outcome.message == DUPLICATE_MESSAGE
        assert outcome.status == 409

    def test_auth_error_message(self) -> None:
        assert APIOutcome.auth_error().message == AUTH_ERROR_MESSAGE

    def test_server_error_default_message(self) -> None:
        assert APIOutcome.server_error(500).message == "Server returned error: 500"

    def test_server_error_custom_message(self) -> None:
        assert APIOutcome.server_error(500, "Database down").message == "Database down"

    def test_error_code(self) -> None:
        assert APIOutcome.network_error().error_code == "NETWORK_ERROR"
        assert APIOutcome.protocol_error("x").error_code == "PROTOCOL_ERROR"

    def test_failure_kinds(self) -> None:
        assert APIOutcome.network_error().is_failure is True
        assert APIOutcome.server_error(502).is_failure is True
        assert APIOutcome.auth_error().is_failure is False
        assert APIOutcome.duplicate().is_failure is False
        assert APIOutcome.validation_error("bad").is_failure is False
