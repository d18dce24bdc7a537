"""Locating and reading ``bmcapture.toml``.

The file is optional. ``BMCAPTURE_CONFIG`` names it explicitly; otherwise
the nearest one in the working directory or any parent wins.
"""

from __future__ import annotations

import os
import sys
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "bmcapture.toml"
CONFIG_ENV_VAR = "BMCAPTURE_CONFIG"
APP_DIRNAME = "bmcapture"


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies at *start* (default: cwd), if any.

    A ``BMCAPTURE_CONFIG`` that points nowhere disables discovery.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override)
        return path if path.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*; a syntax error becomes a ``ClickException``."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc


def user_config_dir() -> Path:
    """Per-user configuration directory for the current platform."""
    if sys.platform.startswith("win"):
        return Path(os.environ.get("APPDATA") or Path.home()) / APP_DIRNAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIRNAME
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_DIRNAME
