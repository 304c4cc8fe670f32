"""
Shared pytest fixtures and configuration for bootpedia tests.

This module provides:
- Quiet structlog configuration (nothing printed, no logger caching)
- Settings pointing at a temporary data directory
- In-memory collaborators (documents, auth, favorites)
- A raw tutorial record factory and a ``wait_until`` polling helper
"""

import asyncio
import os
import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import structlog

# Ensure bootpedia package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bootpedia.adapters import InMemoryDocumentStore, InMemoryKeyValueStore, StaticAuth
from bootpedia.core.settings import BootpediaSettings, reset_settings
from bootpedia.stores import FavoritesStore

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def quiet_logging():
    """Route structlog output nowhere while still running every log call."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Every test sees default settings rooted in its own tmp directory."""
    for name in list(os.environ):
        if name.startswith("BOOTPEDIA_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BOOTPEDIA_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings(tmp_path) -> BootpediaSettings:
    return BootpediaSettings(data_dir=tmp_path / "data")


@pytest.fixture
def now() -> Callable[[], datetime]:
    """Fixed clock for stores and search."""
    return lambda: NOW


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Factory for raw remote tutorial records, ``age_days`` before NOW."""

    def _make(title: str = "Fix GRUB", *, age_days: float = 0, **fields: Any) -> dict[str, Any]:
        created = NOW - timedelta(days=age_days)
        record = {
            "title": title,
            "description": f"How to {title.lower()}",
            "content": "<p>Steps</p>",
            "category": "bcd-mbr",
            "author": "Ana",
            "createdAt": created,
            "updatedAt": created,
            "views": 0,
            "difficulty": "Beginner",
            "estimatedTime": 10,
            "keywords": [],
            "tags": [],
        }
        record.update(fields)
        return record

    return _make


@pytest.fixture
def documents() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def auth() -> StaticAuth:
    return StaticAuth(authenticated=True)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def favorites(kv) -> FavoritesStore:
    return FavoritesStore(kv)


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    """Poll ``predicate`` on the event loop until true (fails after ``timeout``)."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not reached before timeout")
            await asyncio.sleep(0.01)

    return _wait
