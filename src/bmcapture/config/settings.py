"""CaptureSettings: CLI flags, env vars and ``bmcapture.toml`` in one object.

Sources in priority order:

  1. CLI flags passed by Click
  2. ``BMCAPTURE_*`` environment variables (``__`` for nested sections)
  3. the discovered or explicit ``bmcapture.toml``
  4. defaults from the section models

These are the client's own settings. The remote credentials live in the
settings store (:mod:`bmcapture.infrastructure.store`), which is written
only by the options page.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, InitSettingsSource, PydanticBaseSettingsSource

from bmcapture.config.discovery import find_config, read_toml, user_config_dir
from bmcapture.config.models import HttpConfig, StoreConfig

STORE_FILENAME = "settings.json"

# TOML contents for the settings object under construction.
_toml_data: ContextVar[dict[str, Any] | None] = ContextVar("_toml_data", default=None)


class CaptureSettings(BaseSettings):
    """Frozen settings for one ``bmcapture`` invocation.

    Built by :meth:`from_cli` and kept on the
    :class:`~bmcapture.commands._context.AppContext`.

    Attributes:
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BMCAPTURE_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    no_interact: bool = False

    http: HttpConfig = Field(default_factory=HttpConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @property
    def store_path(self) -> Path:
        """Location of the settings store file."""
        return self.store.path or user_config_dir() / STORE_FILENAME

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml = InitSettingsSource(settings_cls, _toml_data.get() or {})
        return init_settings, env_settings, toml

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **cli_flags: Any,
    ) -> CaptureSettings:
        """Build settings for a CLI invocation.

        An explicit *config_path* replaces discovery from *start*; if it
        does not exist no TOML is read.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(start)

        token = _toml_data.set(read_toml(toml_path) if toml_path else {})
        try:
            return cls(config_path=toml_path, **cli_flags)
        finally:
            _toml_data.reset(token)
