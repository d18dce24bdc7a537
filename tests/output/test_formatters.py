"""Tests for the format_result dispatcher and OutputSettings."""

import json

from bmcapture.output.formatters import OutputSettings, format_result
from bmcapture.services.result import ServiceError, ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code="NETWORK_ERROR", message=msg),
    )


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode_returns_valid_json(self) -> None:
        output = format_result(_ok("popup", state="success"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "popup"
        assert data["data"]["state"] == "success"

    def test_json_mode_error(self) -> None:
        output = format_result(_err("popup", "Bad"), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is False
        assert data["error"]["code"] == "NETWORK_ERROR"
        assert data["error"]["message"] == "Bad"

    def test_json_wins_over_quiet(self) -> None:
        settings = OutputSettings(json_output=True, quiet=True)
        assert json.loads(format_result(_ok(), settings=settings))["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_success(self) -> None:
        output = format_result(_ok("options_save"), settings=OutputSettings(quiet=True))
        assert output == "OK: options_save"

    def test_quiet_success_with_state(self) -> None:
        output = format_result(_ok("popup", state="duplicate"), settings=OutputSettings(quiet=True))
        assert output == "OK: popup duplicate"

    def test_quiet_error(self) -> None:
        output = format_result(_err("popup", "Bad input"), settings=OutputSettings(quiet=True))
        assert output.startswith("ERROR: popup")
        assert "Bad input" in output


class TestFormatResultDefault:
    def test_rich_rendering(self) -> None:
        output = format_result(_ok("options_save", message="Settings saved"))
        assert output.startswith("OK")
        assert "Settings saved" in output
