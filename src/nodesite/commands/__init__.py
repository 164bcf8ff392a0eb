"""Subcommand modules for nodesite.

Provides register_commands() which uses deferred imports to keep
``nodesite --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from nodesite.commands.build import build
    from nodesite.commands.ingest import ingest
    from nodesite.commands.redirects import redirects
    from nodesite.commands.slug import slug
    from nodesite.commands.source import source

    cli.add_command(build)
    cli.add_command(source)
    cli.add_command(ingest)
    cli.add_command(redirects)
    cli.add_command(slug)
