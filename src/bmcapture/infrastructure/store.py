"""SettingsStore: durable key-value persistence shared by every context.

The store is a single JSON object on disk. Every context reads it at
startup; only the options page writes it, and only after a successful
connection test. Writes replace the file atomically so a concurrent
reader never observes a partial document.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from bmcapture.domain.models import ApiSettings

logger = logging.getLogger(__name__)

SETTINGS_KEYS = ("apiUrl", "apiKey")


class SettingsStoreError(Exception):
    """The settings file exists but cannot be read as a JSON object."""


def _read_document(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    raw = path.read_text(encoding="utf-8")
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        msg = f"Invalid settings file {path}: {exc}"
        raise SettingsStoreError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Invalid settings file {path}: expected a JSON object"
        raise SettingsStoreError(msg)
    return data


def _write_document(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
            fh.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class SettingsStore:
    """Async key-value store backed by a JSON file.

    File I/O runs in a worker thread so the calling event loop only
    suspends, mirroring the browser storage API this replaces.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, *keys: str) -> dict[str, Any]:
        """Return the stored values for *keys* (all keys when none given)."""
        data = await asyncio.to_thread(_read_document, self._path)
        if not keys:
            return data
        return {k: data[k] for k in keys if k in data}

    async def set(self, values: dict[str, Any]) -> None:
        """Merge *values* into the stored document."""

        def _update() -> None:
            data = _read_document(self._path)
            data.update(values)
            _write_document(self._path, data)

        await asyncio.to_thread(_update)
        logger.debug("Settings store updated: %s", ", ".join(sorted(values)))

    async def load_settings(self) -> ApiSettings | None:
        """Load the remote API settings, or None when absent or invalid."""
        stored = await self.get(*SETTINGS_KEYS)
        if not stored.get("apiUrl") or not stored.get("apiKey"):
            return None
        try:
            return ApiSettings.model_validate(stored)
        except ValidationError:
            logger.debug("Stored settings are invalid; treating as not configured")
            return None

    async def save_settings(self, settings: ApiSettings) -> None:
        """Persist *settings* under ``apiUrl`` / ``apiKey``."""
        await self.set(settings.to_store())
