"""
CLI: ``bootpedia config`` — configuration inspection.
"""

from __future__ import annotations

import typer
from rich.table import Table

from bootpedia.cli.utils import console
from bootpedia.core.settings import get_settings

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    format: str = typer.Option("table", "--format", "-f", help="Output format: table, json, env"),
) -> None:
    """Show the effective settings."""
    settings = get_settings()

    if format == "json":
        console.print_json(settings.model_dump_json())
        return

    values = settings.model_dump(mode="json")
    if format == "env":
        for key, value in sorted(values.items()):
            line = f"BOOTPEDIA_{key.upper()}={'' if value is None else value}"
            console.print(line, highlight=False, markup=False, soft_wrap=True)
        return

    table = Table(title="Settings")
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in sorted(values.items()):
        table.add_row(key, str(value))
    console.print(table)
    console.print(f"\n[bold]Documents:[/bold] {settings.documents_path}")
    console.print(f"[bold]Local storage:[/bold] {settings.local_storage_path}")
