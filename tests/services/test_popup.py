"""Tests for the CapturePopup flow."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from bmcapture.domain.models import ApiSettings, TabInfo
from bmcapture.domain.outcomes import APIOutcome, OutcomeKind
from bmcapture.domain.popup import (
    BAD_CATEGORY_MESSAGE,
    LOAD_FAILED_MESSAGE,
    MISSING_PAGE_URL_MESSAGE,
    InvalidTransitionError,
    PopupAction,
    PopupForm,
    PopupState,
)
from bmcapture.infrastructure.store import SettingsStore
from bmcapture.services.api_client import APIClient
from bmcapture.services.popup import CapturePopup, PopupClosedError, StaticTabSource

PAGE = StaticTabSource("https://example.com/article", "An Article")


def _popup(store: SettingsStore, client: Any, **kwargs: Any) -> CapturePopup:
    return CapturePopup(store, client, PAGE, **kwargs)


class HangingClient:
    """API client whose category fetch never completes until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()
        self.finished = False

    async def fetch_categories(self, settings: ApiSettings) -> APIOutcome:
        await self.release.wait()
        self.finished = True
        return APIOutcome.success([])


class FlakyTabSource:
    """Tab source that fails a given number of times before answering."""

    def __init__(self, failures: int, error: Exception) -> None:
        self.failures = failures
        self.error = error

    async def active_tab(self) -> TabInfo:
        if self.failures:
            self.failures -= 1
            raise self.error
        return TabInfo(url="https://example.com/article", title="An Article")


class TestOpen:
    @pytest.mark.asyncio
    async def test_not_configured_makes_no_requests(
        self, store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        popup = _popup(store, api_client)
        view = await popup.open()
        assert view.state is PopupState.NOT_CONFIGURED
        assert view.actions == (PopupAction.OPEN_OPTIONS,)
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_ready_with_tab_and_categories(
        self, configured_store: SettingsStore, api_client: APIClient
    ) -> None:
        view = await _popup(configured_store, api_client).open()
        assert view.state is PopupState.READY
        assert view.url == "https://example.com/article"
        assert view.title == "An Article"
        assert [o.label for o in view.categories] == ["Work", "— Dev", "—— Python", "Personal"]

    @pytest.mark.asyncio
    async def test_auth_error(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        server.categories_response = httpx.Response(401, json={"success": False})
        popup = _popup(configured_store, api_client)
        view = await popup.open()
        assert view.state is PopupState.ERROR
        assert view.message == "Invalid API key. Please check and try again."
        assert view.actions == (PopupAction.RETRY,)
        assert popup.last_outcome is not None
        assert popup.last_outcome.kind is OutcomeKind.AUTH_ERROR

    @pytest.mark.asyncio
    async def test_category_timeout(self, configured_store: SettingsStore) -> None:
        client = HangingClient()
        popup = _popup(configured_store, client, category_timeout=0.05)
        view = await popup.open()
        assert view.state is PopupState.ERROR
        assert view.message == "Request timeout"

    @pytest.mark.asyncio
    async def test_late_fetch_result_is_ignored(self, configured_store: SettingsStore) -> None:
        client = HangingClient()
        popup = _popup(configured_store, client, category_timeout=0.05)
        await popup.open()

        client.release.set()
        await asyncio.sleep(0.01)
        assert client.finished is True
        assert popup.state is PopupState.ERROR
        assert popup.view.categories == []

    @pytest.mark.asyncio
    async def test_tab_query_failure_is_error(
        self, configured_store: SettingsStore, api_client: APIClient
    ) -> None:
        tabs = FlakyTabSource(1, RuntimeError("no active tab"))
        popup = CapturePopup(configured_store, api_client, tabs)
        view = await popup.open()
        assert view.state is PopupState.ERROR
        assert view.message == "no active tab"
        assert view.actions == (PopupAction.RETRY,)
        assert popup.last_outcome is None

        view = await popup.retry()
        assert view.state is PopupState.READY
        assert view.url == "https://example.com/article"

    @pytest.mark.asyncio
    async def test_tab_query_failure_without_message(
        self, configured_store: SettingsStore, api_client: APIClient
    ) -> None:
        popup = CapturePopup(configured_store, api_client, FlakyTabSource(1, RuntimeError()))
        view = await popup.open()
        assert view.state is PopupState.ERROR
        assert view.message == LOAD_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_open_twice_is_invalid(
        self, configured_store: SettingsStore, api_client: APIClient
    ) -> None:
        popup = _popup(configured_store, api_client)
        await popup.open()
        with pytest.raises(InvalidTransitionError):
            await popup.open()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        popup = _popup(configured_store, api_client)
        await popup.open()
        view = await popup.submit(
            PopupForm(url="https://example.com/article", category="2", tags="a, b")
        )
        assert view.state is PopupState.SUCCESS
        assert view.bookmark == {"id": 42, "url": "https://example.com/article"}
        assert server.bodies() == [
            {
                "url": "https://example.com/article",
                "category_id": 2,
                "tags": ["a", "b"],
                "is_favorite": False,
            }
        ]

    @pytest.mark.asyncio
    async def test_duplicate(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        server.save_response = httpx.Response(409, json={"success": False})
        popup = _popup(configured_store, api_client)
        await popup.open()
        view = await popup.submit(PopupForm(url="https://example.com/article"))
        assert view.state is PopupState.DUPLICATE
        assert view.actions == (PopupAction.CLOSE,)

    @pytest.mark.asyncio
    async def test_server_error(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        server.save_response = httpx.Response(500, json={"success": False, "error": "DB down"})
        popup = _popup(configured_store, api_client)
        await popup.open()
        view = await popup.submit(PopupForm(url="https://example.com/article"))
        assert view.state is PopupState.ERROR
        assert view.message == "DB down"

    @pytest.mark.asyncio
    async def test_invalid_form_stays_ready(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        popup = _popup(configured_store, api_client)
        await popup.open()
        view = await popup.submit(PopupForm(url="https://x", category="not-a-number"))
        assert view.state is PopupState.READY
        assert view.message == BAD_CATEGORY_MESSAGE
        assert "/api/external.php" not in server.paths()

    @pytest.mark.asyncio
    async def test_blank_url_stays_ready(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        popup = _popup(configured_store, api_client)
        await popup.open()
        view = await popup.submit(PopupForm(url="  ", category="2"))
        assert view.state is PopupState.READY
        assert view.message == MISSING_PAGE_URL_MESSAGE
        assert server.bodies() == []

    @pytest.mark.asyncio
    async def test_submit_before_ready_is_invalid(
        self, store: SettingsStore, api_client: APIClient
    ) -> None:
        popup = _popup(store, api_client)
        await popup.open()
        with pytest.raises(InvalidTransitionError):
            await popup.submit(PopupForm(url="https://x"))


class TestRetryAndClose:
    @pytest.mark.asyncio
    async def test_retry_reloads(
        self, configured_store: SettingsStore, api_client: APIClient, server: Any
    ) -> None:
        server.categories_response = httpx.Response(500, json={"success": False})
        popup = _popup(configured_store, api_client)
        assert (await popup.open()).state is PopupState.ERROR

        server.categories_response = None
        view = await popup.retry()
        assert view.state is PopupState.READY
        assert view.message == ""
        assert server.paths() == ["/api/categories.php", "/api/categories.php"]

    @pytest.mark.asyncio
    async def test_retry_rereads_settings(
        self,
        store: SettingsStore,
        api_client: APIClient,
        server: Any,
    ) -> None:
        await store.set({"apiUrl": "https://old.example.com", "apiKey": "bm_old"})
        server.categories_response = httpx.Response(401, json={"success": False})
        popup = _popup(store, api_client)
        await popup.open()

        await store.set({"apiUrl": "https://new.example.com", "apiKey": "bm_new"})
        server.categories_response = None
        view = await popup.retry()
        assert view.state is PopupState.READY
        assert server.requests[-1].url.host == "new.example.com"

    @pytest.mark.asyncio
    async def test_closed_popup_rejects_work(
        self, configured_store: SettingsStore, api_client: APIClient
    ) -> None:
        popup = _popup(configured_store, api_client)
        await popup.open()
        popup.close()
        assert popup.closed
        with pytest.raises(PopupClosedError):
            await popup.submit(PopupForm(url="https://x"))
