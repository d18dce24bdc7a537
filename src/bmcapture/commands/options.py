"""Command group: the options page (view, test, and save credentials)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from bmcapture.commands._base import BmGroup

if TYPE_CHECKING:
    from bmcapture.commands._context import AppContext
    from bmcapture.services.options import OptionsStatus
    from bmcapture.services.result import ServiceResult

_OPTIONS_EXAMPLES = """\
  bmcapture options show
  bmcapture options show --reveal
  bmcapture options test https://bookmarks.example.com bm_1234abcd
  bmcapture options save https://bookmarks.example.com bm_1234abcd
  bmcapture options save"""


def mask_key(api_key: str) -> str:
    """Hide all but the prefix and the last four characters of a key."""
    if not api_key:
        return ""
    prefix, tail = api_key[:3], api_key[-4:]
    if len(api_key) <= len(prefix) + len(tail):
        return f"{prefix}****"
    return f"{prefix}****{tail}"


@click.group(cls=BmGroup, examples=_OPTIONS_EXAMPLES)
@click.pass_obj
def options(app: AppContext) -> None:
    """View, test, and save the bookmark server credentials."""


@options.command(
    examples="""\
  bmcapture options show
  bmcapture options show --reveal
  bmcapture --json options show"""
)
@click.option("--reveal", is_flag=True, help="Show the API key unmasked.")
@click.pass_obj
def show(app: AppContext, reveal: bool) -> None:
    """Show the stored server URL and API key."""
    from bmcapture.services.options import OptionsPage
    from bmcapture.services.result import ServiceResult

    stored = app.run(OptionsPage(app.store, app.api_client).load())
    api_key = stored["apiKey"]
    data = {
        "api_url": stored["apiUrl"],
        "api_key": api_key if reveal else mask_key(api_key),
        "configured": bool(stored["apiUrl"] and api_key),
        "store_path": str(app.store.path),
    }
    app.emit(ServiceResult.success("options_show", data))


@options.command(
    "test",
    examples="""\
  bmcapture options test
  bmcapture options test https://bookmarks.example.com bm_1234abcd"""
)
@click.argument("api_url", required=False)
@click.argument("api_key", required=False)
@click.pass_obj
def test_cmd(app: AppContext, api_url: str | None, api_key: str | None) -> None:
    """Test a connection without saving (defaults to the stored values)."""
    from bmcapture.services.options import OptionsPage

    page = OptionsPage(app.store, app.api_client)

    async def _run() -> OptionsStatus:
        stored = await page.load()
        url = api_url if api_url is not None else stored["apiUrl"]
        key = api_key if api_key is not None else stored["apiKey"]
        return await page.test_connection(url, key)

    status = app.run(_run())
    app.emit(_to_result("options_test", status, api_url))


@options.command(
    examples="""\
  bmcapture options save https://bookmarks.example.com bm_1234abcd
  bmcapture options save   # prompts for both values"""
)
@click.argument("api_url", required=False)
@click.argument("api_key", required=False)
@click.pass_obj
def save(app: AppContext, api_url: str | None, api_key: str | None) -> None:
    """Test the credentials and save them when the server accepts them."""
    from bmcapture.services.options import OptionsPage

    page = OptionsPage(app.store, app.api_client)
    if app.interactive and (api_url is None or api_key is None):
        stored = app.run(page.load())
        if api_url is None:
            api_url = click.prompt("Server URL", default=stored["apiUrl"] or None, err=True)
        if api_key is None:
            api_key = click.prompt("API key", hide_input=True, err=True)

    status = app.run(page.save(api_url or "", api_key or ""))
    app.emit(_to_result("options_save", status, api_url))


def _to_result(op: str, status: OptionsStatus, api_url: str | None) -> ServiceResult:
    from bmcapture.domain.models import normalize_api_url
    from bmcapture.services.result import ErrorCode, ServiceResult

    data: dict[str, object] = {"message": status.message, "persisted": status.persisted}
    if api_url:
        data["api_url"] = normalize_api_url(api_url)

    if status.ok:
        return ServiceResult.success(op, data)
    if status.outcome is not None:
        return ServiceResult.failure(op, status.outcome.value.upper(), status.message, data=data)
    detail = {"field": status.field.value} if status.field else None
    return ServiceResult.failure(
        op, ErrorCode.VALIDATION_ERROR, status.message, data=data, detail=detail
    )
