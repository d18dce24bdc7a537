"""Command group: the background relay (install, context menu, messages)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from bmcapture.commands._base import BmGroup

if TYPE_CHECKING:
    from bmcapture.commands._context import AppContext
    from bmcapture.services.relay import BackgroundRelay, RelayReply
    from bmcapture.services.result import ServiceResult

_RELAY_EXAMPLES = """\
  bmcapture relay install
  bmcapture relay install --reason update
  bmcapture relay menu --page-url https://example.com --title "Example"
  bmcapture relay menu --page-url https://example.com --link-url https://example.com/a
  bmcapture relay send --url https://example.com --tags "python, web" --favorite"""


def _relay(app: AppContext, opened: list[bool]) -> BackgroundRelay:
    from bmcapture.services.relay import BackgroundRelay

    def open_options() -> None:
        opened.append(True)
        app.open_options()

    return BackgroundRelay(app.store, app.api_client, open_options)


@click.group(cls=BmGroup, examples=_RELAY_EXAMPLES)
@click.pass_obj
def relay(app: AppContext) -> None:
    """Save bookmarks without the popup."""


@relay.command(
    examples="""\
  bmcapture relay install
  bmcapture relay install --reason update"""
)
@click.option(
    "--reason",
    type=click.Choice(["install", "update"]),
    default="install",
    help="Why the extension was (re)installed.",
)
@click.pass_obj
def install(app: AppContext, reason: str) -> None:
    """Register the context menu; first install opens the options page."""
    from bmcapture.services.result import ServiceResult

    opened: list[bool] = []
    items = _relay(app, opened).on_installed(reason)
    data = {
        "reason": reason,
        "options_opened": bool(opened),
        "menu_items": [item.model_dump(mode="json") for item in items],
    }
    app.emit(ServiceResult.success("relay_install", data))


@relay.command(
    examples="""\
  bmcapture relay menu --page-url https://example.com --title "Example"
  bmcapture relay menu --page-url https://example.com --link-url https://example.com/a"""
)
@click.option("--page-url", required=True, help="URL of the page that was right-clicked.")
@click.option("--link-url", default=None, help="URL of the right-clicked link, if any.")
@click.option("--title", default="", help="Title of the tab.")
@click.pass_obj
def menu(app: AppContext, page_url: str, link_url: str | None, title: str) -> None:
    """Simulate a click on the "Save to Bookmark Manager" menu item."""
    from bmcapture.domain.models import TabInfo
    from bmcapture.services.relay import ContextMenuClick
    from bmcapture.services.result import ErrorCode, ServiceResult

    opened: list[bool] = []
    click_event = ContextMenuClick(page_url=page_url, link_url=link_url)
    tab = TabInfo(url=page_url, title=title)
    outcome = app.run(_relay(app, opened).on_context_menu_clicked(click_event, tab))

    data: dict[str, Any] = {"url": click_event.target_url, "options_opened": bool(opened)}
    if outcome is None:
        app.emit(
            ServiceResult.failure("relay_menu", ErrorCode.NOT_CONFIGURED, "Not configured", data=data)
        )
        return
    data["outcome"] = outcome.kind.value
    app.emit(ServiceResult.from_outcome("relay_menu", outcome, data))


@relay.command(
    examples="""\
  bmcapture relay send --url https://example.com
  bmcapture relay send --url https://example.com --title "Example" --category-id 3
  bmcapture --json relay send --url https://example.com --tags "a, b" --favorite"""
)
@click.option("--url", required=True, help="URL to bookmark.")
@click.option("--title", default=None, help="Bookmark title.")
@click.option("--category-id", type=int, default=None, help="Category ID.")
@click.option("--tags", default="", help="Comma-separated tags.")
@click.option("--favorite", is_flag=True, help="Mark the bookmark as a favorite.")
@click.pass_obj
def send(
    app: AppContext,
    url: str,
    title: str | None,
    category_id: int | None,
    tags: str,
    favorite: bool,
) -> None:
    """Send a SAVE_BOOKMARK message to the relay and wait for the reply."""
    from bmcapture.domain.models import parse_tags
    from bmcapture.services.relay import SAVE_BOOKMARK, MessageChannel

    message: dict[str, Any] = {
        "type": SAVE_BOOKMARK,
        "data": {
            "url": url,
            "title": title,
            "categoryId": category_id,
            "tags": parse_tags(tags) or None,
            "isFavorite": favorite,
        },
    }

    async def _run() -> RelayReply | None:
        channel = MessageChannel(_relay(app, []))
        reply = await channel.request(message)
        await channel.drain()
        return reply

    reply = app.run(_run())
    app.emit(_reply_result(url, reply))


def _reply_result(url: str, reply: RelayReply | None) -> ServiceResult:
    from bmcapture.domain.outcomes import OutcomeKind
    from bmcapture.services.relay import NOT_CONFIGURED_MESSAGE
    from bmcapture.services.result import ErrorCode, ServiceResult

    if reply is None:
        return ServiceResult.failure(
            "relay_send", ErrorCode.PROTOCOL_ERROR, "No reply from relay", data={"url": url}
        )

    data: dict[str, Any] = reply.model_dump(mode="json")
    data["url"] = url
    if reply.kind is not None:
        data["outcome"] = reply.kind.value

    if reply.success:
        return ServiceResult.success("relay_send", data)
    message = reply.error or "Unknown error"
    if reply.kind is OutcomeKind.DUPLICATE:
        return ServiceResult.success("relay_send", data, warnings=[message])

    if reply.kind is not None:
        code: str = reply.kind.value.upper()
    elif reply.error == NOT_CONFIGURED_MESSAGE:
        code = ErrorCode.NOT_CONFIGURED
    else:
        code = ErrorCode.VALIDATION_ERROR
    return ServiceResult.failure("relay_send", code, message, data=data)
