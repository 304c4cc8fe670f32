"""
Root Typer application for the bootpedia CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from bootpedia.core.logging import configure_logging
from bootpedia.core.settings import get_settings

app = Typer(
    name="bootpedia",
    help="bootpedia — inspect and seed the tutorial data layer.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from bootpedia import __version__

        typer.echo(f"bootpedia {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override BOOTPEDIA_LOG_LEVEL."),
) -> None:
    """bootpedia CLI — tutorials, categories, favorites, links and configuration."""
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level, json_format=settings.json_logs)


# ── Sub-command registration ─────────────────────────────────────────────

from bootpedia.cli.categories import app as categories_app  # noqa: E402
from bootpedia.cli.config import app as config_app  # noqa: E402
from bootpedia.cli.favorites import app as favorites_app  # noqa: E402
from bootpedia.cli.links import app as links_app  # noqa: E402
from bootpedia.cli.tutorials import app as tutorials_app  # noqa: E402

app.add_typer(tutorials_app, name="tutorials", help="List, search and show tutorials.")
app.add_typer(categories_app, name="categories", help="Seed and inspect categories.")
app.add_typer(favorites_app, name="favorites", help="Manage the local favorites set.")
app.add_typer(links_app, name="links", help="List and seed useful links.")
app.add_typer(config_app, name="config", help="Configuration inspection.")
