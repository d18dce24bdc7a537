"""CLI commands, one module per capture context.

Command modules are imported only when the root group is built, and their
service imports are deferred further, so ``--help`` stays fast.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click

# (module, attribute) for each top-level command.
COMMANDS: tuple[tuple[str, str], ...] = (
    ("bmcapture.commands.popup", "popup"),
    ("bmcapture.commands.options", "options"),
    ("bmcapture.commands.relay", "relay"),
)


def register_commands(cli: click.Group) -> None:
    """Attach the popup command and the options and relay groups to *cli*."""
    for module, attr in COMMANDS:
        cli.add_command(getattr(import_module(module), attr))
