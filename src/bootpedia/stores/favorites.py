"""Locally persisted set of favorite tutorial ids.

The whole set is written as a JSON array under one key after every mutation,
so a reload always sees the last successful write. Storage trouble is never
fatal: a corrupt value loads as an empty set and a failed write leaves the
in-memory set as the source of truth until the next successful write.
"""

from __future__ import annotations

import json
from collections.abc import Iterator

from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import KeyValueStore

logger = get_logger(__name__)

DEFAULT_FAVORITES_KEY = "bootpedia-favorites"


class FavoritesStore:
    """Insertion-ordered favorites backed by a :class:`KeyValueStore`.

    Example:
        >>> from bootpedia.adapters import InMemoryKeyValueStore
        >>> favorites = FavoritesStore(InMemoryKeyValueStore())
        >>> favorites.add("t1")
        >>> favorites.is_favorite("t1")
        True
        >>> favorites.ids
        ('t1',)
    """

    def __init__(self, storage: KeyValueStore, key: str | None = None):
        self._storage = storage
        self._key = key or DEFAULT_FAVORITES_KEY
        self._ids: dict[str, None] = dict.fromkeys(self._load())

    @property
    def key(self) -> str:
        return self._key

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(self._ids)

    def add(self, tutorial_id: str) -> None:
        if tutorial_id in self._ids:
            return
        self._ids[tutorial_id] = None
        self._persist()

    def remove(self, tutorial_id: str) -> None:
        if tutorial_id not in self._ids:
            return
        del self._ids[tutorial_id]
        self._persist()

    def is_favorite(self, tutorial_id: str) -> bool:
        return tutorial_id in self._ids

    def __contains__(self, tutorial_id: object) -> bool:
        return tutorial_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    def _load(self) -> list[str]:
        try:
            raw = self._storage.get(self._key)
        except Exception as e:
            logger.warning("favorites_load_failed", key=self._key, error=str(e))
            return []
        if raw is None:
            return []
        try:
            value = json.loads(raw)
        except ValueError as e:
            logger.warning("favorites_corrupt", key=self._key, error=str(e))
            return []
        if not isinstance(value, list):
            logger.warning("favorites_corrupt", key=self._key, error="stored value is not a list")
            return []
        return [item for item in value if isinstance(item, str)]

    def _persist(self) -> None:
        try:
            self._storage.set(self._key, json.dumps(list(self._ids)))
        except Exception as e:
            logger.error("favorites_save_failed", key=self._key, error=str(e))


__all__ = ["DEFAULT_FAVORITES_KEY", "FavoritesStore"]
