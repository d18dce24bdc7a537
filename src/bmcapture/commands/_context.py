"""AppContext: the object behind ``@click.pass_obj``.

The root group builds one per invocation. Commands get the settings
store and API client from it, run their coroutine through :meth:`run`,
and finish with :meth:`emit`, which owns stdout/stderr and exit codes.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

import click

from bmcapture.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

    from bmcapture.config.settings import CaptureSettings
    from bmcapture.infrastructure.store import SettingsStore
    from bmcapture.services.api_client import APIClient
    from bmcapture.services.result import ServiceResult

T = TypeVar("T")


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The store and client
    are created lazily so ``--help`` and ``--version`` touch nothing.
    """

    def __init__(self, settings: CaptureSettings) -> None:
        self.settings = settings
        self._store: SettingsStore | None = None
        self._api_client: APIClient | None = None

        # Configure structured logging
        from bmcapture.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def store(self) -> SettingsStore:
        """The settings store (created lazily on first access)."""
        if self._store is None:
            from bmcapture.infrastructure.store import SettingsStore

            self._store = SettingsStore(self.settings.store_path)
        return self._store

    @property
    def api_client(self) -> APIClient:
        """The API client (created lazily on first access)."""
        if self._api_client is None:
            from bmcapture.services.api_client import APIClient

            self._api_client = APIClient(self.settings.http)
        return self._api_client

    @property
    def interactive(self) -> bool:
        """Whether commands may prompt. JSON output never prompts."""
        return not (self.settings.no_interact or self.settings.json_output)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run one context invocation on a fresh event loop."""
        from bmcapture.infrastructure.store import SettingsStoreError

        try:
            return asyncio.run(coro)
        except SettingsStoreError as exc:
            raise click.ClickException(str(exc)) from exc

    def open_options(self) -> None:
        """Point the user at the options commands (the CLI's options page)."""
        click.echo(
            "Bookmark Manager is not configured. "
            "Run `bmcapture options save API_URL API_KEY` to connect.",
            err=True,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and set the exit status.

        Successes go to stdout with any warnings on stderr. Failures go
        to stderr and exit 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
