"""CapturePopup: the interactive, single-use capture flow.

A controller is created each time the popup opens and dropped when it
closes; nothing carries over between invocations. All async work happens
here, while :mod:`bmcapture.domain.popup` decides which state it leads to.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Protocol

from bmcapture.domain.models import TabInfo
from bmcapture.domain.outcomes import APIOutcome
from bmcapture.domain.popup import (
    CATEGORY_FETCH_TIMEOUT,
    CATEGORY_TIMEOUT_MESSAGE,
    LOAD_FAILED_MESSAGE,
    POPUP_ACTIONS,
    CategoryOption,
    InvalidTransitionError,
    PopupEvent,
    PopupForm,
    PopupState,
    PopupView,
    category_options,
    is_valid_transition,
    load_event,
    next_state,
    save_event,
)

if TYPE_CHECKING:
    from bmcapture.domain.models import ApiSettings
    from bmcapture.infrastructure.store import SettingsStore
    from bmcapture.services.api_client import APIClient

logger = logging.getLogger(__name__)


class TabSource(Protocol):
    """Answers the active-tab query."""

    async def active_tab(self) -> TabInfo: ...


class StaticTabSource:
    """A tab source that always reports the same tab."""

    def __init__(self, url: str, title: str = "") -> None:
        self._tab = TabInfo(url=url, title=title)

    async def active_tab(self) -> TabInfo:
        return self._tab


class PopupClosedError(RuntimeError):
    """Raised when a closed popup is driven again."""


class CapturePopup:
    """Finite-state capture flow over a settings store and the API client.

    Parameters:
        store: Source of the remote settings, read on every (re)open.
        api_client: Classifies every network call into an APIOutcome.
        tabs: Answers the active-tab query while loading.
        category_timeout: Race budget for the category fetch.
    """

    def __init__(
        self,
        store: SettingsStore,
        api_client: APIClient,
        tabs: TabSource,
        *,
        category_timeout: float = CATEGORY_FETCH_TIMEOUT,
    ) -> None:
        self._store = store
        self._api = api_client
        self._tabs = tabs
        self._category_timeout = category_timeout

        self._state = PopupState.UNINITIALIZED
        self._settings: ApiSettings | None = None
        self._tab = TabInfo()
        self._categories: list[CategoryOption] = []
        self._message = ""
        self._bookmark: dict[str, Any] | None = None
        self._last_outcome: APIOutcome | None = None
        self._closed = False
        # Fetches that lost the timeout race. Held so they are not collected
        # mid-flight; their results are never read.
        self._abandoned: set[asyncio.Future[APIOutcome]] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> PopupState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_outcome(self) -> APIOutcome | None:
        """Outcome of the most recent category fetch or save."""
        return self._last_outcome

    @property
    def view(self) -> PopupView:
        """Immutable snapshot of everything the UI shows."""
        return PopupView(
            state=self._state,
            url=self._tab.url,
            title=self._tab.title,
            categories=list(self._categories),
            message=self._message,
            actions=POPUP_ACTIONS[self._state],
            bookmark=self._bookmark,
        )

    async def open(self) -> PopupView:
        """Run initialization: settings, then active tab and categories."""
        self._ensure_open()
        self._require(PopupEvent.SETTINGS_LOADED)

        settings = await self._store.load_settings()
        if settings is None:
            self._advance(PopupEvent.NO_SETTINGS)
            return self.view

        self._settings = settings
        self._advance(PopupEvent.SETTINGS_LOADED)

        tab, outcome = await asyncio.gather(
            self._query_tab(),
            self._race_categories(settings),
        )
        if tab is None:
            self._advance(PopupEvent.LOAD_FAILED)
            return self.view

        self._tab = tab
        self._last_outcome = outcome
        if outcome.ok:
            self._categories = category_options(outcome.payload)
        else:
            self._message = outcome.message
        self._advance(load_event(outcome))
        return self.view

    async def submit(self, form: PopupForm) -> PopupView:
        """Build a draft from *form* and save it.

        A form that cannot become a draft (no URL, non-numeric category)
        leaves the popup in ``ready`` with a message and sends nothing.
        """
        self._ensure_open()
        self._require(PopupEvent.SUBMIT)
        assert self._settings is not None

        rejection = form.rejection()
        if rejection:
            self._message = rejection
            return self.view

        draft = form.to_draft()
        self._message = ""
        self._advance(PopupEvent.SUBMIT)
        outcome = await self._api.save(self._settings, draft)
        self._last_outcome = outcome
        if outcome.ok:
            self._bookmark = outcome.payload if isinstance(outcome.payload, dict) else None
        else:
            self._message = outcome.message
        self._advance(save_event(outcome))
        return self.view

    async def retry(self) -> PopupView:
        """Leave the error state and re-run the full initialization."""
        self._ensure_open()
        self._advance(PopupEvent.RETRY)
        self._settings = None
        self._tab = TabInfo()
        self._categories = []
        self._message = ""
        self._bookmark = None
        self._last_outcome = None
        return await self.open()

    def close(self) -> None:
        """Discard the popup. In-flight work is dropped, not cancelled."""
        self._closed = True
        self._abandoned.clear()
        logger.debug("Popup closed in state %s", self._state)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _query_tab(self) -> TabInfo | None:
        """Active tab, or None with the failure message set."""
        try:
            return await self._tabs.active_tab()
        except Exception as exc:
            logger.warning("Active tab query failed: %s", exc)
            self._message = str(exc) or LOAD_FAILED_MESSAGE
            return None

    async def _race_categories(self, settings: ApiSettings) -> APIOutcome:
        """Race the category fetch against the timeout; first to settle wins."""
        fetch = asyncio.ensure_future(self._api.fetch_categories(settings))
        done, _ = await asyncio.wait({fetch}, timeout=self._category_timeout)
        if fetch in done:
            return fetch.result()

        self._abandoned.add(fetch)
        fetch.add_done_callback(self._abandoned.discard)
        logger.warning("Category fetch exceeded %.1fs; ignoring its result", self._category_timeout)
        return APIOutcome.network_error(CATEGORY_TIMEOUT_MESSAGE)

    def _advance(self, event: PopupEvent) -> None:
        previous = self._state
        self._state = next_state(previous, event)
        logger.debug("Popup %s --%s--> %s", previous, event, self._state)

    def _require(self, event: PopupEvent) -> None:
        if not is_valid_transition(self._state, event):
            raise InvalidTransitionError(self._state, event)

    def _ensure_open(self) -> None:
        if self._closed:
            msg = "Popup has been closed"
            raise PopupClosedError(msg)
