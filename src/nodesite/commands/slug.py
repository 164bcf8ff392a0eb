"""Command: show the fields derived for one content file."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from nodesite.commands._base import NodesiteCommand

if TYPE_CHECKING:
    from nodesite.commands._context import AppContext


@click.command(
    cls=NodesiteCommand,
    examples=[
        ("nodesite slug content/blog/2022-11-11-release.md", "blog slug, date and reading time"),
        ("nodesite -q slug content/learn/intro.md", "slug only"),
    ],
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def slug(app: AppContext, path: Path) -> None:
    """Derive slug, date, reading time, and authors for PATH."""
    from nodesite.services.ingest import IngestService

    app.emit(IngestService(app.site).describe(path))
