"""Sections of ``bmcapture.toml``.

Every field has a default, so the file only lists overrides and may be
absent altogether.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from bmcapture import __version__


class HttpConfig(BaseModel):
    """[http] section."""

    model_config = {"frozen": True}

    timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default=f"bmcapture/{__version__}", min_length=1)


class StoreConfig(BaseModel):
    """[store] section.

    ``path`` overrides the settings file location; None means the
    per-user config directory.
    """

    model_config = {"frozen": True}

    path: Path | None = None

