"""
CLI: ``bootpedia links`` — useful links grouped by theme, default seeding.
"""

from __future__ import annotations

from pathlib import Path

import typer

from bootpedia.adapters import StaticAuth
from bootpedia.cli.utils import console, open_documents, output_items, run
from bootpedia.core.settings import get_settings
from bootpedia.domain.links import seed_default_links
from bootpedia.stores import LinkStore

app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_links(
    theme: str | None = typer.Option(None, "--theme", "-t", help="Only this theme"),
    data: Path | None = typer.Option(None, "--data", "-d", help="Document file"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show active links grouped by theme."""
    links = LinkStore(open_documents(data), StaticAuth(), settings=get_settings())
    grouped = run(links.get_links, theme)

    if json_out:
        output_items([link for group in grouped.values() for link in group], as_json=True)
        return
    if not grouped:
        console.print("[dim]No links. Run `bootpedia links seed`.[/dim]")
        return
    for name, group in grouped.items():
        console.print(f"[bold]{name}[/bold]")
        for link in group:
            console.print(f"  {link.icon} {link.name}  [cyan]{link.url}[/cyan]")


@app.command("seed")
def seed(
    data: Path | None = typer.Option(None, "--data", "-d", help="Document file"),
) -> None:
    """Add the default links that are not stored yet."""
    documents = open_documents(data)
    created = run(seed_default_links, documents, get_settings().links_collection)

    if not created:
        console.print("[dim]All default links already exist.[/dim]")
        return
    for name in created:
        console.print(f"[green]✓[/green] {name}")
    console.print(f"\nAdded {len(created)} link{'' if len(created) == 1 else 's'}.")
