"""Click command class carrying an ``--examples`` listing.

Examples are ``(invocation, note)`` pairs. ``--examples`` renders them as
an aligned two-column list and exits before arguments are validated, so
``nodesite slug --examples`` works without a PATH.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

Example = tuple[str, str]


def format_examples(command_path: str, examples: Sequence[Example]) -> str:
    formatter = click.HelpFormatter()
    with formatter.section(f"Examples for '{command_path}'"):
        formatter.write_dl([(invocation, note) for invocation, note in examples])
    return formatter.getvalue().rstrip("\n")


class NodesiteCommand(click.Command):
    """Command with an eager ``--examples`` flag when *examples* are given."""

    def __init__(self, *args: Any, examples: Sequence[Example] = (), **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = tuple(examples)
        if self.examples:
            self.params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=self._show_examples,
                    help="Show usage examples.",
                )
            )

    def _show_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if value:
            click.echo(format_examples(ctx.command_path, self.examples))
            ctx.exit(0)
