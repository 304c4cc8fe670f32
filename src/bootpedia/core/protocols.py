"""
Canonical protocol definitions for Bootpedia's external collaborators.

The data layer never talks to a concrete provider. It depends on four
structural contracts, and anything matching their shape can be plugged in:
the bundled adapters in :mod:`bootpedia.adapters`, a hosted document store
client, or a test double.

Architecture:
    ::

        protocols.py
        ├── DocumentStore   — subscribe / get_one / insert / patch / remove / query_once
        ├── BlobStore       — resolve_url(path) -> url, raises BlobStoreError
        ├── AuthProvider    — is_authenticated (read synchronously)
        └── KeyValueStore   — get / set of strings (durable local storage)

    Value types:
        DocumentRecord(id, data)          one raw remote record
        Snapshot(collection, records)     one emission of a subscription
        Predicate(field, op, value)       one query_once filter

Guardrails:
    ❌ DON'T: Import a provider SDK from the stores
    ✅ DO: Wrap the SDK in an adapter matching these protocols

Tags:
    protocol, document-store, blob-store, auth, key-value, bootpedia
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentRecord:
    """One raw record as stored remotely."""

    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Snapshot:
    """Full state of a subscribed collection at one point in time."""

    collection: str
    records: tuple[DocumentRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class Predicate:
    """A ``query_once`` filter: ``field op value``.

    Supported ops: ``==``, ``!=``, ``in``, ``array-contains``.
    """

    field: str
    op: str
    value: Any

    def matches(self, data: Mapping[str, Any]) -> bool:
        actual = data.get(self.field)
        if self.op == "==":
            return actual == self.value
        if self.op == "!=":
            return actual != self.value
        if self.op == "in":
            return actual in self.value
        if self.op == "array-contains":
            return isinstance(actual, (list, tuple)) and self.value in actual
        raise ValueError(f"Unsupported predicate operator: {self.op!r}")


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentStore(Protocol):
    """
    Remote document store holding the tutorial and category collections.

    ``subscribe`` yields the full collection once immediately and again after
    every change, for as long as the consumer iterates. Transport failures are
    raised from the iterator (adapters raise ``ConnectivityError``).
    """

    def subscribe(
        self,
        collection: str,
        order_by: str,
        *,
        descending: bool = True,
    ) -> AsyncIterator[Snapshot]:
        """Stream snapshots of ``collection`` ordered by ``order_by``."""
        ...

    async def get_one(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch one record's data, or ``None`` if it does not exist."""
        ...

    async def insert(self, collection: str, record: Mapping[str, Any]) -> str:
        """Create a record and return its store-assigned id."""
        ...

    async def patch(self, collection: str, document_id: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into an existing record (``NotFoundError`` if missing)."""
        ...

    async def remove(self, collection: str, document_id: str) -> None:
        """Delete a record. Removing a missing record is a no-op."""
        ...

    async def query_once(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
    ) -> list[DocumentRecord]:
        """One-shot query; all predicates are ANDed."""
        ...


@runtime_checkable
class BlobStore(Protocol):
    """Blob store able to sign a fetchable URL for an object path."""

    async def resolve_url(self, path: str) -> str:
        """Return a URL for ``path``; failures raise ``BlobStoreError``."""
        ...


@runtime_checkable
class AuthProvider(Protocol):
    """Exposes whether an actor is currently signed in."""

    @property
    def is_authenticated(self) -> bool:
        ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable local string storage (browser-localStorage shaped)."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...


__all__ = [
    "AuthProvider",
    "BlobStore",
    "DocumentRecord",
    "DocumentStore",
    "KeyValueStore",
    "Predicate",
    "Snapshot",
]
