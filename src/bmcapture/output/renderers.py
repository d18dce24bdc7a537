"""Human-readable rendering of command results.

:func:`render_result` picks a renderer by ``result.op`` (popup, options,
relay) and falls back to listing the data fields. Failures share one
error layout whatever the op.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from bmcapture.output.console import create_console, get_output, style_for_state

if TYPE_CHECKING:
    from rich.console import Console

    from bmcapture.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Colors are dropped when stdout is not a terminal.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    state = result.data.get("state")
    if state:
        return f"OK: {result.op} {state}"
    return f"OK: {result.op}"


def category_table(categories: list[dict[str, Any]]) -> Table:
    """Build the category picker table (value + indented label)."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="bm.id", no_wrap=True, justify="right")
    table.add_column("Category")
    table.add_row("", Text("Uncategorized", style="dim"))
    for option in categories:
        table.add_row(str(option.get("value", "")), str(option.get("label", "")))
    return table


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="bm.ok")
    op = Text(f"  {result.op}", style="bm.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="bm.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="bm.id")
    elif key == "url" or key.endswith("_url"):
        v = Text(str(value), style="bm.url")
    elif key == "title":
        v = Text(str(value), style="bm.title")
    elif key == "state":
        v = Text(str(value), style=style_for_state(str(value)))
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text("  note: ", style="bm.warning"), warning, end="")
        console.print()


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="bm.error")
    op = Text(f"  {result.op}", style="bm.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Popup renderers ───────────────────────────────────────────────────


def _render_popup(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a popup view: state, captured tab, categories or bookmark."""
    _status_line(console, result)
    d = result.data
    for key in ("state", "url", "title", "message"):
        if d.get(key):
            _field(console, key, d[key])

    categories = d.get("categories") or []
    if d.get("state") == "ready" and categories:
        console.print()
        console.print(category_table(categories))

    bookmark = d.get("bookmark")
    if bookmark and isinstance(bookmark, dict):
        for key in ("id", "title", "url"):
            if key in bookmark:
                _field(console, f"bookmark_{key}", bookmark[key])
    _render_warnings(console, result)


# ── Options renderers ─────────────────────────────────────────────────


def _render_options_show(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render stored settings (key masked unless revealed)."""
    _status_line(console, result)
    d = result.data
    _field(console, "api_url", d.get("api_url") or "(not set)")
    _field(console, "api_key", d.get("api_key") or "(not set)")
    _field(console, "configured", d.get("configured", False))
    if verbose and "store_path" in d:
        _field(console, "store_path", d["store_path"])


def _render_options_status(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render a connection test or save."""
    _status_line(console, result)
    d = result.data
    for key in ("message", "api_url", "persisted"):
        if key in d:
            _field(console, key, d[key])


# ── Relay renderers ───────────────────────────────────────────────────


def _render_relay_install(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render registered context-menu items."""
    _status_line(console, result)
    _field(console, "reason", result.data.get("reason", ""))
    _field(console, "options_opened", result.data.get("options_opened", False))
    items = result.data.get("menu_items", [])
    if items:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Menu item", style="bm.id", no_wrap=True)
        table.add_column("Title", style="bm.title")
        table.add_column("Contexts")
        for item in items:
            table.add_row(
                str(item.get("id", "")),
                str(item.get("title", "")),
                ", ".join(item.get("contexts", [])),
            )
        console.print()
        console.print(table)


def _render_relay_save(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a relay save (context menu or message)."""
    _status_line(console, result)
    d = result.data
    for key in ("url", "outcome", "success"):
        if key in d:
            _field(console, key, d[key])
    if verbose and d.get("data") is not None:
        _field(console, "data", d["data"])
    _render_warnings(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    _render_warnings(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "popup": _render_popup,
    "options_show": _render_options_show,
    "options_test": _render_options_status,
    "options_save": _render_options_status,
    "relay_install": _render_relay_install,
    "relay_menu": _render_relay_save,
    "relay_send": _render_relay_save,
}
