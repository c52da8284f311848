"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Workspace initialization and
centralized result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from formgraph.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from formgraph.config.settings import FormGraphSettings
    from formgraph.infrastructure.workspace import Workspace
    from formgraph.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace is created lazily on first use so ``--help`` and
    ``--version`` never touch the database.
    """

    def __init__(self, settings: FormGraphSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from formgraph.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            log_json=settings.log_json,
            echo_queries=settings.database.echo_queries,
        )

    @property
    def workspace(self) -> Workspace:
        """The workspace instance (created lazily on first access)."""
        if self._workspace is None:
            from formgraph.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
            click.get_current_context().call_on_close(self._workspace.close)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
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
            if settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
