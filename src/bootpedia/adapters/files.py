"""
JSON-file backed adapters used by the CLI.

``JsonFileDocumentStore`` keeps the in-memory behaviour (including snapshot
fan-out) and writes the whole database back after every mutation.
``JsonFileKeyValueStore`` is durable local storage for the favorites set.

File layout::

    {"collections": {"tutorials": {"<id>": {...}}, "categories": {...}}}

Writes go to a sibling temp file first and are then renamed into place, so a
crash mid-write leaves the previous file intact. A mutation whose write
fails is undone in memory as well and no snapshot is sent for it.
"""

from __future__ import annotations

import contextlib
import copy
import json
import os
from collections.abc import Iterator, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

from bootpedia.adapters.memory import InMemoryDocumentStore
from bootpedia.core.errors import ConnectivityError
from bootpedia.core.logging import get_logger
from bootpedia.core.timestamps import to_iso8601

logger = get_logger(__name__)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso8601(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _atomic_write(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False, default=_encode), encoding="utf-8")
    os.replace(tmp, path)


class JsonFileDocumentStore(InMemoryDocumentStore):
    """Document store persisted to a single JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(self._load())

    def _load(self) -> dict[str, dict[str, dict[str, Any]]]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConnectivityError(f"Cannot read document file {self.path}: {e}", cause=e) from e
        collections = payload.get("collections", {}) if isinstance(payload, dict) else {}
        logger.debug("document_file_loaded", path=str(self.path), collections=sorted(collections))
        return collections

    def save(self) -> None:
        payload = {"collections": {name: records for name, records in self._collections.items() if records}}
        try:
            _atomic_write(self.path, payload)
        except OSError as e:
            raise ConnectivityError(f"Cannot write document file {self.path}: {e}", cause=e) from e

    def _changed(self, collection: str) -> None:
        self.save()
        super()._changed(collection)

    @contextlib.contextmanager
    def _rollback_on_failure(self, collection: str) -> Iterator[None]:
        """Restore ``collection`` if the mutation inside could not be saved."""
        before = copy.deepcopy(self._collections.get(collection, {}))
        try:
            yield
        except Exception:
            self._collections[collection] = before
            logger.warning("document_write_rolled_back", path=str(self.path), collection=collection)
            raise

    async def insert(self, collection: str, record: Mapping[str, Any]) -> str:
        with self._rollback_on_failure(collection):
            return await super().insert(collection, record)

    async def patch(self, collection: str, document_id: str, partial: Mapping[str, Any]) -> None:
        with self._rollback_on_failure(collection):
            await super().patch(collection, document_id, partial)

    async def remove(self, collection: str, document_id: str) -> None:
        with self._rollback_on_failure(collection):
            await super().remove(collection, document_id)


class JsonFileKeyValueStore:
    """String key-value store kept in one JSON object on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, Mapping):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return dict(payload)

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            values = self._read()
        except ValueError:
            logger.warning("local_storage_reset", path=str(self.path))
            values = {}
        values[key] = value
        _atomic_write(self.path, values)


__all__ = ["JsonFileDocumentStore", "JsonFileKeyValueStore"]
