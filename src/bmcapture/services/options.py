"""OptionsPage: the only writer of the settings store.

INVARIANT: Credentials are persisted only after a live connection test
succeeds. A failed save leaves the store exactly as it was.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from bmcapture.domain.models import ApiSettings
from bmcapture.domain.outcomes import OutcomeKind
from bmcapture.domain.validation import (
    MISSING_BOTH_MESSAGE,
    OptionsField,
    normalize_credentials,
    validate_credentials,
)
from bmcapture.infrastructure.store import SETTINGS_KEYS

if TYPE_CHECKING:
    from bmcapture.infrastructure.store import SettingsStore
    from bmcapture.services.api_client import APIClient

logger = logging.getLogger(__name__)

CONNECTED_MESSAGE = "Connected successfully"
SAVED_MESSAGE = "Settings saved"


class OptionsStatus(BaseModel):
    """What the options page shows after an action.

    Attributes:
        ok: Whether the action succeeded.
        message: Status line text.
        field: Input to focus after a local rejection.
        outcome: Kind of the connection-test outcome, when one ran.
        persisted: Whether the store was written.
    """

    model_config = {"frozen": True}

    ok: bool
    message: str
    field: OptionsField | None = None
    outcome: OutcomeKind | None = None
    persisted: bool = False


class OptionsPage:
    """Validates, tests, and persists the remote API credentials."""

    def __init__(self, store: SettingsStore, api_client: APIClient) -> None:
        self._store = store
        self._api = api_client

    async def load(self) -> dict[str, str]:
        """Stored values used to pre-fill the form (missing keys are empty)."""
        stored = await self._store.get(*SETTINGS_KEYS)
        return {key: str(stored.get(key) or "") for key in SETTINGS_KEYS}

    async def test_connection(self, api_url: str, api_key: str) -> OptionsStatus:
        """On-demand connection test; never persists."""
        url, key = normalize_credentials(api_url, api_key)
        if not url or not key:
            return OptionsStatus(ok=False, message=MISSING_BOTH_MESSAGE)
        return await self._run_test(url, key)

    async def save(self, api_url: str, api_key: str) -> OptionsStatus:
        """Validate locally, test the connection, then persist on success."""
        url, key = normalize_credentials(api_url, api_key)
        rejection = validate_credentials(url, key)
        if rejection is not None:
            return OptionsStatus(ok=False, message=rejection.message, field=rejection.field)

        status = await self._run_test(url, key)
        if not status.ok:
            logger.info("Connection test failed; settings not saved")
            return status

        await self._store.save_settings(ApiSettings(api_url=url, api_key=key))
        logger.info("Settings saved for %s", url)
        return status.model_copy(update={"message": SAVED_MESSAGE, "persisted": True})

    async def _run_test(self, url: str, key: str) -> OptionsStatus:
        try:
            candidate = ApiSettings(api_url=url, api_key=key)
        except ValueError:
            # The on-demand test accepts keys the save path would reject.
            candidate = ApiSettings.model_construct(api_url=url, api_key=key)

        outcome = await self._api.test_connection(candidate)
        if outcome.ok:
            return OptionsStatus(ok=True, message=CONNECTED_MESSAGE, outcome=outcome.kind)
        return OptionsStatus(ok=False, message=outcome.message, outcome=outcome.kind)
