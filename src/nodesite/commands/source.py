"""Command: fetch external datasets into the local cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from nodesite.commands._base import NodesiteCommand

if TYPE_CHECKING:
    from nodesite.commands._context import AppContext


@click.command(
    cls=NodesiteCommand,
    examples=[
        ("nodesite source", "fetch and cache every dataset"),
        ("nodesite -v source", "per-dataset fetch timings"),
    ],
)
@click.pass_obj
def source(app: AppContext) -> None:
    """Fetch release, banner, and nvm datasets concurrently."""
    from nodesite.services.source import SourceService

    app.emit(SourceService(app.site).source())
