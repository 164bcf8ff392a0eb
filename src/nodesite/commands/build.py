"""Command: build the site (source, ingest, pages, redirects, publish)."""

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
        ("nodesite build", "fetch datasets, then build"),
        ("nodesite build --skip-source", "reuse cached datasets"),
        ("nodesite build --output dist", "publish somewhere else"),
        ("nodesite -v build", "with phase timings"),
        ("nodesite --json build", "machine-readable result"),
    ],
)
@click.option(
    "--skip-source",
    is_flag=True,
    help="Reuse datasets from the last 'nodesite source' instead of fetching.",
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (default: [site] output_dir).",
)
@click.pass_obj
def build(app: AppContext, skip_source: bool, output_dir: Path | None) -> None:
    """Build page and redirect manifests into the output directory."""
    from nodesite.services.build import BuildService

    app.emit(BuildService(app.site).build(skip_source=skip_source, output_dir=output_dir))
