"""Rich consoles that render into a string.

Renderers build their output on a console backed by ``StringIO`` and hand
back plain text, so commands decide where it is echoed. Rich drops color
codes by itself when the real stream is not a terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console, RenderableType
from rich.theme import Theme

from bmcapture.domain.popup import PopupState

DEFAULT_WIDTH = 120

_STATE_STYLES: dict[str, str] = {
    PopupState.READY: "green",
    PopupState.SUCCESS: "bold green",
    PopupState.DUPLICATE: "yellow",
    PopupState.ERROR: "red",
    PopupState.NOT_CONFIGURED: "yellow",
}

BM_THEME = Theme(
    {
        "bm.ok": "bold green",
        "bm.error": "bold red",
        "bm.warning": "bold yellow",
        "bm.op": "bold cyan",
        "bm.key": "dim",
        "bm.id": "bold blue",
        "bm.url": "underline",
        "bm.title": "bold",
        **{f"bm.state.{state}": style for state, style in _STATE_STYLES.items()},
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """A themed console writing to a fresh buffer."""
    return Console(
        file=StringIO(),
        theme=BM_THEME,
        no_color=no_color,
        highlight=False,
        width=width or DEFAULT_WIDTH,
    )


def get_output(console: Console) -> str:
    """Everything *console* has printed so far."""
    buffer = console.file
    if not isinstance(buffer, StringIO):
        raise TypeError("console was not created by create_console()")
    return buffer.getvalue()


def render_text(*renderables: RenderableType) -> str:
    """Print *renderables* on a new console and return the text."""
    console = create_console()
    console.print(*renderables)
    return get_output(console).rstrip("\n")


def style_for_state(state: str) -> str:
    """Theme style for a popup state; unstyled states get ``""``."""
    return f"bm.state.{state}" if state in _STATE_STYLES else ""
