"""Command: enrich every content file and report its slug."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from nodesite.commands._base import NodesiteCommand

if TYPE_CHECKING:
    from nodesite.commands._context import AppContext


@click.command(
    cls=NodesiteCommand,
    examples=[
        ("nodesite ingest", "count records by category"),
        ("nodesite -v ingest", "list every file and slug"),
    ],
)
@click.pass_obj
def ingest(app: AppContext) -> None:
    """Ingest all content without building pages."""
    from nodesite.services.ingest import IngestService

    app.emit(IngestService(app.site).ingest())
