"""APIClient: the single chokepoint for talking to the bookmark server.

INVARIANT: Every public method returns exactly one APIOutcome. Transport
faults, HTTP statuses, and malformed bodies are all classified; nothing
raises past this module.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from bmcapture.domain.models import Category
from bmcapture.domain.outcomes import (
    CONNECT_ERROR_MESSAGE,
    NON_ASCII_KEY_MESSAGE,
    NON_JSON_MESSAGE,
    TIMEOUT_ERROR_MESSAGE,
    APIOutcome,
    OutcomeKind,
)
from bmcapture.infrastructure.http import build_async_client

if TYPE_CHECKING:
    from bmcapture.config.models import HttpConfig
    from bmcapture.domain.models import ApiSettings, BookmarkDraft

logger = logging.getLogger(__name__)

CATEGORIES_PATH = "/api/categories.php"
BOOKMARKS_PATH = "/api/external.php"

JSON_MEDIA_TYPE = "application/json"

_CATEGORY_LIST = TypeAdapter(list[Category])


class ResponseEnvelope(BaseModel):
    """``{success, data?, error?}`` wrapper returned by every endpoint."""

    model_config = {"extra": "ignore"}

    success: bool
    data: Any = None
    error: str | None = None


def is_json_response(response: httpx.Response) -> bool:
    """True when the response declares ``application/json``."""
    content_type = response.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == JSON_MEDIA_TYPE


def _error_text(body: Any) -> str | None:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error
    return None


def decode_response(
    response: httpx.Response,
    *,
    allow_duplicate: bool = False,
    data_adapter: TypeAdapter[Any] | None = None,
) -> APIOutcome:
    """Classify a received response into an APIOutcome.

    Status, headers, and body are considered together in a fixed order:
    content type, JSON body, 401, 409 (when *allow_duplicate*), other
    non-2xx, envelope schema, ``success`` flag, then the ``data`` schema.
    """
    status = response.status_code
    if not is_json_response(response):
        return APIOutcome.protocol_error(NON_JSON_MESSAGE, status=status)

    try:
        body = response.json()
    except ValueError:
        return APIOutcome.protocol_error("Server returned invalid JSON.", status=status)

    if status == httpx.codes.UNAUTHORIZED:
        return APIOutcome.auth_error(status=status)
    if allow_duplicate and status == httpx.codes.CONFLICT:
        error = _error_text(body)
        return APIOutcome.duplicate(error, status=status) if error else APIOutcome.duplicate()
    if not response.is_success:
        return APIOutcome.server_error(status, _error_text(body))

    try:
        envelope = ResponseEnvelope.model_validate(body)
    except ValidationError:
        return APIOutcome.protocol_error(
            "Server response is missing the 'success' field.", status=status
        )

    if not envelope.success:
        return APIOutcome.validation_error(
            envelope.error or "Unknown error from server", status=status
        )

    payload = envelope.data
    if data_adapter is not None:
        try:
            payload = data_adapter.validate_python(payload if payload is not None else [])
        except ValidationError:
            return APIOutcome.protocol_error("Server returned malformed data.", status=status)
    return APIOutcome.success(payload, status=status)


class APIClient:
    """Stateless request/response layer over the bookmark API.

    Parameters:
        config: Timeout and User-Agent for every request.
        transport: Optional httpx transport (tests inject a mock).
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def test_connection(self, settings: ApiSettings) -> APIOutcome:
        """Authenticated category read used only to validate credentials."""
        outcome = await self._request("test_connection", "GET", settings, CATEGORIES_PATH)
        if outcome.ok:
            return APIOutcome.success(status=outcome.status)
        return outcome

    async def fetch_categories(self, settings: ApiSettings) -> APIOutcome:
        """Fetch the flat category list; payload is ``list[Category]``."""
        return await self._request(
            "fetch_categories",
            "GET",
            settings,
            CATEGORIES_PATH,
            data_adapter=_CATEGORY_LIST,
        )

    async def save(self, settings: ApiSettings, draft: BookmarkDraft) -> APIOutcome:
        """Submit *draft*. HTTP 409 is the expected ``Duplicate`` outcome."""
        return await self._request(
            "save",
            "POST",
            settings,
            BOOKMARKS_PATH,
            json=draft.to_payload(),
            allow_duplicate=True,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _request(
        self,
        op: str,
        method: str,
        settings: ApiSettings,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        allow_duplicate: bool = False,
        data_adapter: TypeAdapter[Any] | None = None,
    ) -> APIOutcome:
        url = settings.endpoint(path)
        try:
            async with build_async_client(
                self._config,
                extra_headers={"Authorization": f"Bearer {settings.api_key}"},
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, json=json)
        except httpx.TimeoutException as exc:
            logger.debug("%s %s timed out: %s", method, url, exc)
            outcome = APIOutcome.network_error(TIMEOUT_ERROR_MESSAGE)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            outcome = APIOutcome.network_error(CONNECT_ERROR_MESSAGE)
        except UnicodeEncodeError as exc:
            # Header values must be ASCII.
            logger.debug("%s %s not sent: %s", method, url, exc)
            outcome = APIOutcome.validation_error(NON_ASCII_KEY_MESSAGE)
        else:
            outcome = decode_response(
                response,
                allow_duplicate=allow_duplicate,
                data_adapter=data_adapter,
            )

        self._log(op, method, url, outcome)
        return outcome

    @staticmethod
    def _log(op: str, method: str, url: str, outcome: APIOutcome) -> None:
        if outcome.ok or outcome.kind is OutcomeKind.DUPLICATE:
            logger.debug("%s: %s %s -> %s (%s)", op, method, url, outcome.kind, outcome.status)
        else:
            logger.warning(
                "%s: %s %s -> %s (%s): %s",
                op,
                method,
                url,
                outcome.kind,
                outcome.status,
                outcome.message,
            )
