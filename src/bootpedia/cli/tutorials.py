"""
CLI: ``bootpedia tutorials`` — list, search and inspect mirrored tutorials.
"""

from __future__ import annotations

from dataclasses import asdict
from pathlib import Path

import typer

from bootpedia.cli.utils import fail, load_store, output_dict, output_items, run, tutorial_row
from bootpedia.domain.models import SearchFilters
from bootpedia.domain.search import run_search

app = typer.Typer(no_args_is_help=True)

DataOption = typer.Option(None, "--data", "-d", help="Document file (default: <data_dir>/bootpedia.json)")


@app.command("list")
def list_tutorials(
    data: Path | None = DataOption,
    category: str | None = typer.Option(None, "--category", "-c", help="Only this category id"),
    limit: int | None = typer.Option(None, "--limit", "-n", min=1, help="Show at most N tutorials"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List tutorials, newest first."""
    store = run(load_store, data)
    tutorials = store.get_by_category(category) if category else list(store.tutorials)
    if limit is not None:
        tutorials = tutorials[:limit]
    output_items([tutorial_row(t) for t in tutorials], as_json=json_out, title="Tutorials")


@app.command("search")
def search_tutorials(
    query: str = typer.Argument("", help="Free text matched against title, description, author, tags, keywords"),
    data: Path | None = DataOption,
    category: str | None = typer.Option(None, "--category", "-c"),
    difficulty: str | None = typer.Option(None, "--difficulty", help="Beginner, Intermediate or Advanced"),
    tags: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag filter (repeatable)"),
    time_range: str | None = typer.Option(None, "--time-range", help="week, month or year"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Search tutorials with free text and filters."""
    store = run(load_store, data)
    filters = SearchFilters(category=category, difficulty=difficulty, tags=tags or [], time_range=time_range)
    result = run_search(store.tutorials, query, filters)

    if json_out:
        output_dict(
            {
                "total": result.total,
                "filters": result.filters.model_dump(mode="json", exclude_defaults=True),
                "tutorials": [tutorial_row(t) for t in result.tutorials],
            },
            as_json=True,
        )
        return
    output_items([tutorial_row(t) for t in result.tutorials], title=f"{result.total} result(s)")


@app.command("show")
def show_tutorial(
    tutorial_id: str = typer.Argument(..., help="Tutorial id"),
    data: Path | None = DataOption,
    locale: str = typer.Option("en", "--locale", help="Difficulty label language: en or pt"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Show one tutorial and its neighbours."""
    store = run(load_store, data)
    tutorial = store.get_by_id(tutorial_id)
    if tutorial is None:
        fail(f"Tutorial {tutorial_id!r} not found", code="NOT_FOUND")

    adjacent = store.get_adjacent(tutorial_id)
    details = asdict(tutorial)
    details["difficulty_label"] = store.difficulty_label(tutorial.difficulty, locale)
    details["category_name"] = store.format_category_name(tutorial.category)
    details["previous"] = adjacent.previous.id if adjacent.previous else None
    details["next"] = adjacent.next.id if adjacent.next else None
    if not json_out:
        details.pop("content")
    output_dict(details, as_json=json_out, title=tutorial.title)
