"""
CLI: ``bootpedia categories`` — default seeding and live status.
"""

from __future__ import annotations

from pathlib import Path

import typer

from bootpedia.cli.utils import console, load_store, open_documents, output_items, run
from bootpedia.core.settings import get_settings
from bootpedia.domain.categories import category_status, seed_default_categories

app = typer.Typer(no_args_is_help=True)


@app.command("seed")
def seed(
    data: Path | None = typer.Option(None, "--data", "-d", help="Document file"),
) -> None:
    """Create the default categories that do not exist yet."""
    documents = open_documents(data)
    created = run(seed_default_categories, documents, get_settings().categories_collection)

    if not created:
        console.print("[dim]All default categories already exist.[/dim]")
        return
    for name in created:
        console.print(f"[green]✓[/green] {name}")
    console.print(f"\nCreated {len(created)} categor{'y' if len(created) == 1 else 'ies'}.")


@app.command("status")
def status(
    data: Path | None = typer.Option(None, "--data", "-d", help="Document file"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show every category with its live tutorial count."""
    store = run(load_store, data)
    if store.categories_error:
        console.print(f"[yellow]Warning:[/yellow] {store.categories_error}")

    if json_out:
        output_items(list(store.categories), as_json=True)
        return
    if not store.categories:
        console.print("[dim]No categories. Run `bootpedia categories seed`.[/dim]")
        return
    for line in category_status(store.categories):
        console.print(f"  {line}")
