"""Click command classes that carry usage examples.

``--help`` stays short; the examples for a command are printed on demand
with ``--examples`` and the help epilog points there.
"""

from __future__ import annotations

from typing import Any

import click

EXAMPLES_HINT = "Run with --examples to see usage examples."


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    examples = getattr(ctx.command, "examples", None) or ""
    click.echo(f"Examples for '{ctx.command_path}':\n")
    click.echo(examples)
    ctx.exit(0)


class _ExamplesMixin:
    """Adds an eager ``--examples`` flag when ``examples`` text is given."""

    params: list[click.Parameter]

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        if examples:
            kwargs.setdefault("epilog", EXAMPLES_HINT)
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_print_examples,
                    help="Show usage examples and exit.",
                )
            )


class BmCommand(_ExamplesMixin, click.Command):
    """Command accepting ``examples=``."""


class BmGroup(_ExamplesMixin, click.Group):
    """Group accepting ``examples=``; its subcommands are BmCommands."""

    command_class = BmCommand
