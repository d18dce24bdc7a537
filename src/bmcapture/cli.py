"""Entry point: the ``bmcapture`` root group and its global flags."""

from __future__ import annotations

import click
from pydantic import ValidationError

from bmcapture import __version__
from bmcapture.commands import register_commands
from bmcapture.commands._base import BmGroup
from bmcapture.commands._context import AppContext
from bmcapture.config.settings import CaptureSettings

_CLI_EXAMPLES = """\
  bmcapture options save https://bookmarks.example.com bm_yourkey
  bmcapture popup --url https://example.com/article
  bmcapture --json relay send --url https://example.com
  bmcapture -c ./bmcapture.toml --no-interact popup --url https://example.com"""


@click.group(
    cls=BmGroup,
    examples=_CLI_EXAMPLES,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(__version__, "-V", "--version", prog_name="bmcapture")
@click.option("--json", "json_output", is_flag=True, help="Emit results as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print only the essentials.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and full error detail.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option("--no-interact", is_flag=True, help="Never prompt; take values from flags.")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Use this bmcapture.toml instead of searching for one.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, **flags: bool) -> None:
    """Capture web pages into a self-hosted Bookmark Manager."""
    try:
        settings = CaptureSettings.from_cli(config_path=config_path, **flags)
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc

    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)


def main() -> None:
    cli(prog_name="bmcapture")
