"""
In-memory collaborator implementations.

These satisfy the protocols in :mod:`bootpedia.core.protocols` without any
external service. They back the test suite, local development and (through
:mod:`bootpedia.adapters.files`) the CLI.

Architecture:
    ::

        InMemoryDocumentStore
          collections: {name: {id: data}}
          subscribers: {name: [queue, ...]}
            ├── subscribe()  → snapshot now, then one per mutation
            ├── insert/patch/remove → _changed(name) → fan out snapshots
            └── fail_subscribers(name, error) → iterators raise error

        InMemoryBlobStore   path → url, scripted failures, optional gate
        StaticAuth          settable is_authenticated flag
        InMemoryKeyValueStore  dict of strings

Tags:
    adapters, in-memory, testing, bootpedia
"""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from bootpedia.core.errors import BlobStoreError, NotFoundError
from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import DocumentRecord, Predicate, Snapshot
from bootpedia.core.timestamps import coerce_datetime, generate_ulid

logger = get_logger(__name__)


def _order_key(data: Mapping[str, Any], order_by: str) -> tuple[int, float, str]:
    value = data.get(order_by)
    moment = coerce_datetime(value)
    if moment is not None:
        return (1, moment.timestamp(), "")
    if value is None:
        return (0, 0.0, "")
    return (1, 0.0, str(value))


@dataclass
class _Subscriber:
    order_by: str
    descending: bool
    queue: asyncio.Queue[Snapshot | BaseException] = field(default_factory=asyncio.Queue)


class InMemoryDocumentStore:
    """Document store kept in process memory.

    Example::

        store = InMemoryDocumentStore({"tutorials": {"t1": {"title": "GRUB"}}})
        async for snapshot in store.subscribe("tutorials", "createdAt"):
            ...
    """

    def __init__(self, collections: Mapping[str, Mapping[str, Mapping[str, Any]]] | None = None):
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        for name, records in (collections or {}).items():
            for document_id, data in records.items():
                self._collections[name][document_id] = copy.deepcopy(dict(data))
        self._subscribers: dict[str, list[_Subscriber]] = defaultdict(list)

    # ── Reads ────────────────────────────────────────────────────────────

    def snapshot(self, collection: str, order_by: str | None = None, *, descending: bool = True) -> Snapshot:
        """Current state of ``collection``, optionally ordered."""
        items = list(self._collections[collection].items())
        if order_by is not None:
            items.sort(key=lambda item: _order_key(item[1], order_by), reverse=descending)
        return Snapshot(
            collection=collection,
            records=tuple(DocumentRecord(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in items),
        )

    async def subscribe(
        self,
        collection: str,
        order_by: str,
        *,
        descending: bool = True,
    ) -> AsyncIterator[Snapshot]:
        subscriber = _Subscriber(order_by=order_by, descending=descending)
        self._subscribers[collection].append(subscriber)
        subscriber.queue.put_nowait(self.snapshot(collection, order_by, descending=descending))
        try:
            while True:
                item = await subscriber.queue.get()
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            self._subscribers[collection].remove(subscriber)

    async def get_one(self, collection: str, document_id: str) -> dict[str, Any] | None:
        data = self._collections[collection].get(document_id)
        return copy.deepcopy(data) if data is not None else None

    async def query_once(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
    ) -> list[DocumentRecord]:
        return [
            record
            for record in self.snapshot(collection).records
            if all(predicate.matches(record.data) for predicate in predicates)
        ]

    # ── Writes ───────────────────────────────────────────────────────────

    async def insert(self, collection: str, record: Mapping[str, Any]) -> str:
        document_id = generate_ulid()
        self._collections[collection][document_id] = copy.deepcopy(dict(record))
        self._changed(collection)
        return document_id

    async def patch(self, collection: str, document_id: str, partial: Mapping[str, Any]) -> None:
        data = self._collections[collection].get(document_id)
        if data is None:
            raise NotFoundError(f"No document {document_id!r} in {collection!r}").with_context(
                collection=collection, document_id=document_id
            )
        data.update(copy.deepcopy(dict(partial)))
        self._changed(collection)

    async def remove(self, collection: str, document_id: str) -> None:
        if self._collections[collection].pop(document_id, None) is not None:
            self._changed(collection)

    # ── Subscription control ─────────────────────────────────────────────

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscribers[collection])

    def fail_subscribers(self, collection: str, error: BaseException) -> None:
        """Make every open subscription on ``collection`` raise ``error``."""
        for subscriber in self._subscribers[collection]:
            subscriber.queue.put_nowait(error)

    def _changed(self, collection: str) -> None:
        for subscriber in self._subscribers[collection]:
            subscriber.queue.put_nowait(
                self.snapshot(collection, subscriber.order_by, descending=subscriber.descending)
            )


class InMemoryBlobStore:
    """Blob store mapping object paths to URLs.

    ``fail(path, *errors)`` queues errors raised by the next calls for that
    path; ``gate`` (an ``asyncio.Event``) holds every call until it is set.
    Each call's path is appended to ``calls``.
    """

    def __init__(self, objects: Mapping[str, str] | None = None, *, gate: asyncio.Event | None = None):
        self.objects = dict(objects or {})
        self.gate = gate
        self.calls: list[str] = []
        self._failures: dict[str, list[BaseException]] = defaultdict(list)

    def fail(self, path: str, *errors: BaseException) -> None:
        self._failures[path].extend(errors)

    async def resolve_url(self, path: str) -> str:
        self.calls.append(path)
        if self.gate is not None:
            await self.gate.wait()
        if self._failures[path]:
            raise self._failures[path].pop(0)
        url = self.objects.get(path)
        if url is None:
            raise BlobStoreError("object-not-found", f"Object {path!r} does not exist")
        return url


@dataclass
class StaticAuth:
    """Auth provider whose state is set directly."""

    authenticated: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.authenticated

    def sign_in(self) -> None:
        self.authenticated = True

    def sign_out(self) -> None:
        self.authenticated = False


class InMemoryKeyValueStore:
    """Key-value store backed by a dict."""

    def __init__(self, values: Mapping[str, str] | None = None):
        self.values: dict[str, str] = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


__all__ = [
    "InMemoryBlobStore",
    "InMemoryDocumentStore",
    "InMemoryKeyValueStore",
    "StaticAuth",
]
