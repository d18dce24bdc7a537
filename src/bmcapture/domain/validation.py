"""Local credential checks run by the options page before any network call."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel

from bmcapture.domain.models import API_KEY_PREFIX, normalize_api_url
from bmcapture.domain.outcomes import NON_ASCII_KEY_MESSAGE

MISSING_BOTH_MESSAGE = "Please enter both URL and API Key"
MISSING_URL_MESSAGE = "Please enter the server URL"
MISSING_KEY_MESSAGE = "Please enter your API key"
BAD_PREFIX_MESSAGE = f'API key should start with "{API_KEY_PREFIX}"'


class OptionsField(StrEnum):
    """Form inputs that can receive focus after a rejection."""

    API_URL = "api_url"
    API_KEY = "api_key"


class FieldError(BaseModel):
    """A rejected input and the message shown next to it."""

    model_config = {"frozen": True}

    field: OptionsField
    message: str


def normalize_credentials(api_url: str, api_key: str) -> tuple[str, str]:
    """Normalize form input: URL without trailing slashes, key trimmed."""
    return normalize_api_url(api_url), api_key.strip()


def is_valid_key(api_key: str) -> bool:
    """Syntactic key check. ``"bm_"`` alone is accepted."""
    return api_key.startswith(API_KEY_PREFIX)


def validate_credentials(api_url: str, api_key: str) -> FieldError | None:
    """Check normalized credentials; returns the first rejection or None."""
    if not api_url:
        return FieldError(field=OptionsField.API_URL, message=MISSING_URL_MESSAGE)
    if not api_key:
        return FieldError(field=OptionsField.API_KEY, message=MISSING_KEY_MESSAGE)
    if not is_valid_key(api_key):
        return FieldError(field=OptionsField.API_KEY, message=BAD_PREFIX_MESSAGE)
    if not api_key.isascii():
        return FieldError(field=OptionsField.API_KEY, message=NON_ASCII_KEY_MESSAGE)
    return None
