"""Main entry point for the marketsnap command line interface."""

from __future__ import annotations

import typer

from marketsnap.core.config import ConfigManager
from marketsnap.core.logging import configure_logging

from .formatters import create_formatter
from .snapshot import register as register_snapshot_commands


def create_app() -> typer.Typer:
    """Create a Typer application instance for marketsnap."""

    app = typer.Typer(add_completion=False, help="marketsnap command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or json).",
            show_default=True,
        ),
        log_level: str = typer.Option(
            "WARNING",
            "--log-level",
            help="Logging level.",
            show_default=True,
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        configure_logging(level=log_level.upper(), serialize=False)
        ctx.obj.update(
            {
                "format": normalized_format,
                "no_color": no_color,
                "config": ConfigManager().get_config(),
            }
        )

    @app.command()
    def serve(
        host: str | None = typer.Option(None, "--host", help="Bind address."),
        port: int | None = typer.Option(None, "--port", help="Bind port."),
        reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
    ) -> None:
        """Run the HTTP endpoint with uvicorn."""

        from marketsnap.web.main import main as run_web

        run_web(host=host, port=port, reload=reload)

    register_snapshot_commands(app)
    return app


app = create_app()


def main() -> None:
    app()
