"""BackgroundRelay: headless saves and the inter-context message channel.

The relay keeps no state between events. Every trigger (install,
context-menu click, SAVE_BOOKMARK message) reads settings afresh, saves
through the API client, and reports an APIOutcome.

INVARIANT: A message reply is produced only after the save resolves.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel, Field, ValidationError

from bmcapture.domain.models import BookmarkDraft, TabInfo
from bmcapture.domain.outcomes import APIOutcome, OutcomeKind

if TYPE_CHECKING:
    from bmcapture.infrastructure.store import SettingsStore
    from bmcapture.services.api_client import APIClient

logger = logging.getLogger(__name__)

SAVE_BOOKMARK = "SAVE_BOOKMARK"
MENU_ITEM_ID = "save-bookmark"
NOT_CONFIGURED_MESSAGE = "Not configured"
NO_URL_MESSAGE = "Nothing to save: the click carried no URL"

INSTALL_REASON = "install"


class ContextMenuItem(BaseModel):
    """A context-menu entry registered on install/update."""

    model_config = {"frozen": True}

    id: str
    title: str
    contexts: tuple[str, ...]


SAVE_MENU_ITEM = ContextMenuItem(
    id=MENU_ITEM_ID,
    title="Save to Bookmark Manager",
    contexts=("page", "link"),
)


class ContextMenuClick(BaseModel):
    """What was right-clicked."""

    model_config = {"frozen": True}

    menu_item_id: str = MENU_ITEM_ID
    page_url: str
    link_url: str | None = None

    @property
    def target_url(self) -> str:
        """The URL to save: the link if one was clicked, else the page."""
        return self.link_url or self.page_url

    def to_draft(self, tab: TabInfo | None) -> BookmarkDraft:
        """A clicked link carries no title; a page takes the tab title."""
        if self.link_url:
            return BookmarkDraft(url=self.link_url, title=None)
        title = tab.title if tab else ""
        return BookmarkDraft(url=self.page_url, title=title or None)


class SaveBookmarkRequest(BaseModel):
    """``{type: "SAVE_BOOKMARK", data: <draft>}`` sent by another context."""

    type: Literal["SAVE_BOOKMARK"]
    data: BookmarkDraft


class RelayReply(BaseModel):
    """``{success, error?, data?}`` answer to a SAVE_BOOKMARK message."""

    model_config = {"frozen": True}

    success: bool
    error: str | None = None
    data: Any = None
    kind: OutcomeKind | None = Field(default=None, exclude=True)

    @classmethod
    def from_outcome(cls, outcome: APIOutcome) -> RelayReply:
        if outcome.ok:
            return cls(success=True, data=outcome.payload, kind=outcome.kind)
        return cls(success=False, error=outcome.message, kind=outcome.kind)


class BackgroundRelay:
    """Reactive entry point that saves bookmarks without any UI.

    Parameters:
        store: Settings store, read on every event.
        api_client: Performs the save.
        open_options: Opens the options page (first run, not configured).
    """

    def __init__(
        self,
        store: SettingsStore,
        api_client: APIClient,
        open_options: Callable[[], None],
    ) -> None:
        self._store = store
        self._api = api_client
        self._open_options = open_options

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_installed(self, reason: str) -> list[ContextMenuItem]:
        """Register the context menu; open the options page on first install."""
        if reason == INSTALL_REASON:
            logger.info("First install; opening options")
            self._open_options()
        return [SAVE_MENU_ITEM]

    async def on_context_menu_clicked(
        self,
        click: ContextMenuClick,
        tab: TabInfo | None = None,
    ) -> APIOutcome | None:
        """Save the clicked link or page.

        Returns None when nothing was attempted: another menu item, or no
        valid settings (the options page is opened instead). A click with
        no URL is a validation error.
        """
        if click.menu_item_id != MENU_ITEM_ID:
            return None

        try:
            draft = click.to_draft(tab)
        except ValidationError:
            logger.warning("Context menu click without a URL; nothing saved")
            return APIOutcome.validation_error(NO_URL_MESSAGE)

        settings = await self._store.load_settings()
        if settings is None:
            self._open_options()
            return None

        outcome = await self._api.save(settings, draft)
        self._log_outcome(draft.url, outcome)
        return outcome

    async def handle_message(self, message: dict[str, Any]) -> RelayReply | None:
        """Answer a SAVE_BOOKMARK message; other message types get no reply."""
        if message.get("type") != SAVE_BOOKMARK:
            return None

        try:
            request = SaveBookmarkRequest.model_validate(message)
        except ValidationError as exc:
            first = exc.errors()[0]
            where = ".".join(str(p) for p in first["loc"])
            return RelayReply(success=False, error=f"{where}: {first['msg']}")

        settings = await self._store.load_settings()
        if settings is None:
            return RelayReply(success=False, error=NOT_CONFIGURED_MESSAGE)

        outcome = await self._api.save(settings, request.data)
        self._log_outcome(request.data.url, outcome)
        return RelayReply.from_outcome(outcome)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _log_outcome(url: str, outcome: APIOutcome) -> None:
        if outcome.ok:
            logger.info("Bookmark saved: %s", url)
        elif outcome.kind is OutcomeKind.DUPLICATE:
            logger.info("Bookmark already exists: %s", url)
        elif outcome.is_failure:
            logger.error("Failed to save bookmark %s: %s", url, outcome.message)
        else:
            logger.warning("Bookmark %s not saved: %s", url, outcome.message)


class MessageChannel:
    """Request/response channel from other contexts to the relay.

    Each request runs as its own task; the channel holds it until the
    reply exists so the caller always observes a response.
    """

    def __init__(self, relay: BackgroundRelay) -> None:
        self._relay = relay
        self._pending: set[asyncio.Task[RelayReply | None]] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, message: dict[str, Any]) -> asyncio.Task[RelayReply | None]:
        """Schedule *message* for the relay and return the reply task."""
        task = asyncio.get_running_loop().create_task(self._relay.handle_message(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def request(self, message: dict[str, Any]) -> RelayReply | None:
        """Send *message* and wait for the relay's reply."""
        return await self.dispatch(message)

    async def drain(self) -> list[RelayReply | None]:
        """Wait for every in-flight reply. Barrier before the context exits."""
        if not self._pending:
            return []
        return list(await asyncio.gather(*self._pending))
