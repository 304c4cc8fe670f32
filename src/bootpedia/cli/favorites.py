"""
CLI: ``bootpedia favorites`` — the locally persisted favorites set.
"""

from __future__ import annotations

from pathlib import Path

import typer

from bootpedia.cli.utils import console, load_store, open_favorites, output_items, run

app = typer.Typer(no_args_is_help=True)

StorageOption = typer.Option(
    None, "--storage", "-s", help="Local storage file (default: <data_dir>/local_storage.json)"
)


@app.command("list")
def list_favorites(
    storage: Path | None = StorageOption,
    data: Path | None = typer.Option(None, "--data", "-d", help="Document file used for titles"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List favorite tutorial ids with their titles."""
    favorites = open_favorites(storage)
    store = run(load_store, data)

    rows = []
    for tutorial_id in favorites:
        tutorial = store.get_by_id(tutorial_id)
        rows.append({"id": tutorial_id, "title": tutorial.title if tutorial else "(missing)"})
    output_items(rows, as_json=json_out, title="Favorites")


@app.command("add")
def add_favorite(
    tutorial_id: str = typer.Argument(..., help="Tutorial id"),
    storage: Path | None = StorageOption,
) -> None:
    """Mark a tutorial as favorite."""
    favorites = open_favorites(storage)
    favorites.add(tutorial_id)
    console.print(f"[green]✓[/green] {tutorial_id} ({len(favorites)} favorite(s))")


@app.command("remove")
def remove_favorite(
    tutorial_id: str = typer.Argument(..., help="Tutorial id"),
    storage: Path | None = StorageOption,
) -> None:
    """Remove a tutorial from the favorites."""
    favorites = open_favorites(storage)
    if tutorial_id not in favorites:
        console.print(f"[dim]{tutorial_id} is not a favorite.[/dim]")
        return
    favorites.remove(tutorial_id)
    console.print(f"[green]✓[/green] removed {tutorial_id}")
