"""
CLI utility helpers — output formatting and local store wiring.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from bootpedia.adapters import JsonFileDocumentStore, JsonFileKeyValueStore, StaticAuth
from bootpedia.core.errors import BootpediaError
from bootpedia.core.settings import get_settings
from bootpedia.domain.models import Tutorial
from bootpedia.stores import FavoritesStore, TutorialStore

console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")


# ── Store helpers ────────────────────────────────────────────────────────


def open_documents(data: Path | None = None) -> JsonFileDocumentStore:
    """Open the JSON document file. Defaults to ``<data_dir>/bootpedia.json``."""
    return JsonFileDocumentStore(data or get_settings().documents_path)


def open_favorites(storage: Path | None = None) -> FavoritesStore:
    """Open the favorites set kept in ``<data_dir>/local_storage.json``."""
    settings = get_settings()
    kv = JsonFileKeyValueStore(storage or settings.local_storage_path)
    return FavoritesStore(kv, key=settings.favorites_key)


async def load_store(data: Path | None = None) -> TutorialStore:
    """Build a read-only store, wait for the first snapshot, then close it."""
    store = TutorialStore(open_documents(data), StaticAuth(), settings=get_settings())
    async with store:
        return store


def run(coro_fn: Callable[..., Coroutine[Any, Any, T] | Awaitable[T]], *args: Any) -> T:
    """Run an async command body, turning data-layer errors into exit code 1."""
    try:
        return asyncio.run(coro_fn(*args))
    except BootpediaError as e:
        fail(e.message, code=e.category.value)


def fail(message: str, *, code: str = "ERROR") -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({code}): {message}")
    raise typer.Exit(code=1)


# ── Output helpers ───────────────────────────────────────────────────────


def tutorial_row(tutorial: Tutorial) -> dict[str, Any]:
    """Compact listing row for one tutorial."""
    return {
        "id": tutorial.id,
        "title": tutorial.title,
        "category": tutorial.category,
        "difficulty": tutorial.difficulty.value,
        "views": tutorial.views,
        "created": tutorial.created_at.date().isoformat(),
    }


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def _default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return str(value)


def output_items(items: list[Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a list of dataclasses/dicts as JSON or a Rich table."""
    if as_json:
        console.print_json(json.dumps([_to_dict(item) for item in items], default=_default))
        return
    if not items:
        console.print("[dim]No items.[/dim]")
        return

    first = _to_dict(items[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in first:
        table.add_column(col, overflow="fold")
    for item in items:
        table.add_row(*(str(_default(v) if isinstance(v, Enum) else v) for v in _to_dict(item).values()))
    console.print(table)


def output_dict(data: dict[str, Any], *, as_json: bool = False, title: str = "") -> None:
    """Render a single dict as JSON or key-value pairs."""
    if as_json:
        console.print_json(json.dumps(data, default=_default))
        return
    if title:
        console.print(f"[bold]{title}[/bold]")
    for key, value in data.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value) or "-"
        console.print(f"  [cyan]{key}[/cyan]: {_default(value) if isinstance(value, Enum) else value}")
