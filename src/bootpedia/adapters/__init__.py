"""Concrete collaborators for the protocols in :mod:`bootpedia.core.protocols`."""

from bootpedia.adapters.files import JsonFileDocumentStore, JsonFileKeyValueStore
from bootpedia.adapters.memory import (
    InMemoryBlobStore,
    InMemoryDocumentStore,
    InMemoryKeyValueStore,
    StaticAuth,
)

__all__ = [
    "InMemoryBlobStore",
    "InMemoryDocumentStore",
    "InMemoryKeyValueStore",
    "JsonFileDocumentStore",
    "JsonFileKeyValueStore",
    "StaticAuth",
]
