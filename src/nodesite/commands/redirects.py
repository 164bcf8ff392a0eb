"""Command: print the expanded redirect table."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from nodesite.commands._base import NodesiteCommand

if TYPE_CHECKING:
    from nodesite.commands._context import AppContext


@click.command(
    cls=NodesiteCommand,
    examples=[
        ("nodesite redirects", "every locale"),
        ("nodesite redirects --locale fr", "one locale prefix"),
        ("nodesite -q redirects", "'from to' pairs, one per line"),
    ],
)
@click.option("--locale", default=None, help="Only show redirects under this locale prefix.")
@click.pass_obj
def redirects(app: AppContext, locale: str | None) -> None:
    """Show every redirect the build would publish."""
    from nodesite.services.build import BuildService

    app.emit(BuildService(app.site).redirects(locale=locale))
