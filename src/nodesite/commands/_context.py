"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy Site initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from nodesite.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from nodesite.config.settings import NodesiteSettings
    from nodesite.infrastructure.site import Site
    from nodesite.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  The site is lazily
    initialized on first use so ``--help`` and ``--version`` never
    load plugins or read site inputs.
    """

    def __init__(self, settings: NodesiteSettings) -> None:
        self.settings = settings
        self._site: Site | None = None

        # Configure structured logging
        from nodesite.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        from nodesite.services.telemetry import enable_telemetry

        enable_telemetry(settings.verbose)

    @property
    def site(self) -> Site:
        """The site instance (created lazily on first access)."""
        if self._site is None:
            from nodesite.infrastructure.site import Site

            self._site = Site(self.settings)
        return self._site

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
