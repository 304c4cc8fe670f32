"""
Tutorial store - local mirror of the remote tutorial collection.

The store holds the state every page reads: the tutorial list, the derived
category index and the loading/error flags. Remote state is authoritative;
the store never merges its own writes into the mirror (the one exception is
the view counter, see :meth:`TutorialStore.increment_views`).

Architecture:
    ::

        DocumentStore.subscribe("tutorials", "createdAt", descending)
              │  Snapshot per remote change
              ▼
        ┌─────────────────────────── TutorialStore ───────────────────────────┐
        │ _consume task ──► normalize_tutorials ──► tutorials (ordered)       │
        │                                  │                                  │
        │ refresh_categories ──► raw categories ──► derive_category_index     │
        │                                                 │                   │
        │                                                 ▼                   │
        │                                       categories (live counts)      │
        │                                                                     │
        │ listeners ◄── _notify()                                             │
        └─────────────────────────────────────────────────────────────────────┘
              ▲                                   │
              │ create/update/delete (auth)       │ delete → FavoritesStore.remove
              │ increment_views (public)          ▼

Failure policy:
    - create/update/delete and the category mutations raise
      (``BootpediaError`` passes through, anything else → ``UnknownError``)
    - ``increment_views`` never raises; on failure the local count still moves
    - subscription failures set ``error`` and keep the previous tutorials
    - category refresh failures set ``categories_error`` and keep the
      previous categories

Examples:
    >>> async with TutorialStore(documents, auth, favorites) as store:
    ...     store.get_adjacent("t2")
    ...     await store.increment_views("t2")

Tags:
    store, subscription, mirror, asyncio, bootpedia
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Iterator, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from bootpedia.core.errors import NotFoundError, UnauthorizedError, wrap_error
from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import AuthProvider, DocumentStore
from bootpedia.core.settings import BootpediaSettings, get_settings
from bootpedia.core.timestamps import utc_now
from bootpedia.domain import categories as category_index
from bootpedia.domain import difficulty as difficulty_labels
from bootpedia.domain.models import (
    Adjacent,
    Category,
    CategoryDraft,
    CategoryPatch,
    SearchFilters,
    Tutorial,
    TutorialDraft,
    TutorialPatch,
)
from bootpedia.domain.normalize import normalize_category, normalize_tutorials
from bootpedia.domain.search import search as search_tutorials
from bootpedia.stores.favorites import FavoritesStore

logger = get_logger(__name__)

TUTORIALS_LOAD_ERROR = "Failed to load tutorials"
CATEGORIES_LOAD_ERROR = "Failed to load categories"

Listener = Callable[[], None]


def _view_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class TutorialStore:
    """Reactive mirror of the tutorial and category collections.

    Args:
        documents: Remote document store
        auth: Tells whether an actor is signed in
        favorites: Favorites set pruned on delete (optional)
        settings: Collection names; defaults to :func:`get_settings`
        now: Clock used for ``createdAt``/``updatedAt`` and normalization
    """

    def __init__(
        self,
        documents: DocumentStore,
        auth: AuthProvider,
        favorites: FavoritesStore | None = None,
        *,
        settings: BootpediaSettings | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        settings = settings or get_settings()
        self._documents = documents
        self._auth = auth
        self._favorites = favorites
        self._now = now
        self.tutorials_collection = settings.tutorials_collection
        self.categories_collection = settings.categories_collection

        self._tutorials: list[Tutorial] = []
        self._raw_categories: list[Category] = []
        self._categories: tuple[Category, ...] = ()
        self._listeners: list[Listener] = []
        self._task: asyncio.Task[None] | None = None
        self._ready = asyncio.Event()

        self.loading = True
        self.error: str | None = None
        self.categories_loading = False
        self.categories_error: str | None = None

    # ── Lifecycle ────────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, *, wait: bool = True) -> None:
        """Open the subscription and load categories.

        With ``wait`` the call returns once the first snapshot (or the first
        subscription error) has been applied.
        """
        if self.running:
            return
        self.loading = True
        self._ready = asyncio.Event()
        self._task = asyncio.create_task(self._consume(), name="bootpedia-tutorial-subscription")
        logger.info("tutorial_subscription_started", collection=self.tutorials_collection)

        await self.refresh_categories()
        if wait:
            await self._ready.wait()

    async def close(self) -> None:
        """Cancel the subscription task. ``start()`` may be called again."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("tutorial_subscription_closed", collection=self.tutorials_collection)

    async def __aenter__(self) -> TutorialStore:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def wait_ready(self) -> None:
        """Wait until the current subscription produced a snapshot or failed."""
        await self._ready.wait()

    async def _consume(self) -> None:
        try:
            async for snapshot in self._documents.subscribe(
                self.tutorials_collection, "createdAt", descending=True
            ):
                self._apply_snapshot(normalize_tutorials(snapshot.records, now=self._now))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.error = TUTORIALS_LOAD_ERROR
            self.loading = False
            logger.error(
                "tutorial_subscription_failed",
                collection=self.tutorials_collection,
                error=str(e),
                error_type=type(e).__name__,
                kept=len(self._tutorials),
            )
            self._notify()
        finally:
            self._ready.set()

    def _apply_snapshot(self, tutorials: list[Tutorial]) -> None:
        self._tutorials = tutorials
        self.loading = False
        self.error = None
        self._reindex()
        self._ready.set()
        logger.debug("tutorial_snapshot_applied", count=len(tutorials))
        self._notify()

    # ── Change notification ──────────────────────────────────────────────

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Call ``callback()`` after every state change; returns an unsubscriber."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logger.warning("store_listener_failed", listener=repr(listener), error=str(e))

    # ── Reads ────────────────────────────────────────────────────────────

    @property
    def tutorials(self) -> tuple[Tutorial, ...]:
        return tuple(self._tutorials)

    @property
    def categories(self) -> tuple[Category, ...]:
        return self._categories

    def __len__(self) -> int:
        return len(self._tutorials)

    def __iter__(self) -> Iterator[Tutorial]:
        return iter(tuple(self._tutorials))

    def get_by_id(self, tutorial_id: str) -> Tutorial | None:
        for tutorial in self._tutorials:
            if tutorial.id == tutorial_id:
                return tutorial
        return None

    def get_by_category(self, category_id: str) -> list[Tutorial]:
        """Tutorials of one category, newest first."""
        matches = [t for t in self._tutorials if t.category == category_id]
        return sorted(matches, key=lambda t: t.created_at, reverse=True)

    def _position(self, tutorial_id: str) -> int | None:
        for index, tutorial in enumerate(self._tutorials):
            if tutorial.id == tutorial_id:
                return index
        return None

    def get_adjacent(self, tutorial_id: str) -> Adjacent:
        """Neighbours in the mirrored (newest first) ordering."""
        index = self._position(tutorial_id)
        if index is None:
            return Adjacent(previous=None, next=None)
        previous = self._tutorials[index - 1] if index > 0 else None
        following = self._tutorials[index + 1] if index + 1 < len(self._tutorials) else None
        return Adjacent(previous=previous, next=following)

    def get_next(self, tutorial_id: str) -> Tutorial | None:
        return self.get_adjacent(tutorial_id).next

    def get_previous(self, tutorial_id: str) -> Tutorial | None:
        return self.get_adjacent(tutorial_id).previous

    def search(
        self,
        query: str | None = "",
        filters: SearchFilters | Mapping[str, Any] | None = None,
    ) -> list[Tutorial]:
        return search_tutorials(self._tutorials, query, filters, now=self._now())

    # ── Presentation helpers ─────────────────────────────────────────────

    @staticmethod
    def difficulty_label(value: Any, locale: str = "en") -> str:
        return difficulty_labels.difficulty_label(value, locale)

    @staticmethod
    def format_category_name(category: str) -> str:
        return category_index.format_category_name(category)

    # ── Tutorial mutations ───────────────────────────────────────────────

    @contextlib.contextmanager
    def _mutation(self, operation: str, **context: Any) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            error = wrap_error(e, f"Could not {operation.replace('_', ' ')}", operation=operation, **context)
            logger.error(
                "store_mutation_failed",
                operation=operation,
                category=error.category.value,
                error=str(e),
                **context,
            )
            if error is e:
                raise
            raise error from e

    def _require_auth(self, operation: str) -> None:
        if not self._auth.is_authenticated:
            raise UnauthorizedError(f"Sign in to {operation.replace('_', ' ')}").with_context(
                operation=operation
            )

    async def create(self, data: TutorialDraft | Mapping[str, Any]) -> str:
        """Create a tutorial and return its id.

        Raises:
            UnauthorizedError: No signed-in actor
            ValidationError: ``data`` violates a field constraint
        """
        with self._mutation("create_tutorial", collection=self.tutorials_collection):
            self._require_auth("create_tutorial")
            draft = TutorialDraft.parse(data)
            now = self._now()
            record = {**draft.to_record(), "views": 0, "createdAt": now, "updatedAt": now}
            tutorial_id = await self._documents.insert(self.tutorials_collection, record)

        logger.info("tutorial_created", tutorial_id=tutorial_id, title=draft.title)
        return tutorial_id

    async def update(self, tutorial_id: str, partial: TutorialPatch | Mapping[str, Any]) -> None:
        """Patch a tutorial. The mirror changes when the next snapshot arrives."""
        with self._mutation("update_tutorial", collection=self.tutorials_collection, document_id=tutorial_id):
            self._require_auth("update_tutorial")
            patch = TutorialPatch.parse(partial)
            record = {**patch.to_record(), "updatedAt": self._now()}
            await self._documents.patch(self.tutorials_collection, tutorial_id, record)

        logger.info("tutorial_updated", tutorial_id=tutorial_id, fields=sorted(record))

    async def delete(self, tutorial_id: str) -> None:
        """Delete a tutorial and drop it from the favorites set."""
        with self._mutation("delete_tutorial", collection=self.tutorials_collection, document_id=tutorial_id):
            self._require_auth("delete_tutorial")
            await self._documents.remove(self.tutorials_collection, tutorial_id)

        if self._favorites is not None:
            self._favorites.remove(tutorial_id)
        logger.info("tutorial_deleted", tutorial_id=tutorial_id)

    async def increment_views(self, tutorial_id: str) -> int | None:
        """Add one view. Public and never raises.

        The remote count is read and ``count + 1`` written back. Concurrent
        calls are not serialized, so lost updates are possible. If any step
        fails the mirrored count is still bumped by one and may drift from the
        remote value until the next snapshot carries it.

        Returns:
            The mirrored view count afterwards, or None if the tutorial is
            not in the mirror.
        """
        try:
            data = await self._documents.get_one(self.tutorials_collection, tutorial_id)
            if data is None:
                raise NotFoundError(f"Tutorial {tutorial_id!r} does not exist").with_context(
                    collection=self.tutorials_collection, document_id=tutorial_id
                )
            views = _view_count(data.get("views")) + 1
            await self._documents.patch(
                self.tutorials_collection,
                tutorial_id,
                {"views": views, "updatedAt": self._now()},
            )
        except Exception as e:
            logger.warning("increment_views_failed", tutorial_id=tutorial_id, error=str(e))
            return self._set_local_views(tutorial_id, lambda current: current + 1)

        return self._set_local_views(tutorial_id, lambda _current: views)

    def _set_local_views(self, tutorial_id: str, compute: Callable[[int], int]) -> int | None:
        index = self._position(tutorial_id)
        if index is None:
            return None
        tutorial = self._tutorials[index]
        updated = replace(tutorial, views=compute(tutorial.views))
        self._tutorials = [*self._tutorials[:index], updated, *self._tutorials[index + 1 :]]
        self._notify()
        return updated.views

    # ── Categories ───────────────────────────────────────────────────────

    def _reindex(self) -> None:
        self._categories = category_index.derive_category_index(self._raw_categories, self._tutorials)

    async def refresh_categories(self) -> tuple[Category, ...]:
        """Reload the category list once; failures are kept in ``categories_error``."""
        self.categories_loading = True
        try:
            records = await self._documents.query_once(self.categories_collection)
        except Exception as e:
            self.categories_error = CATEGORIES_LOAD_ERROR
            logger.error(
                "category_refresh_failed",
                collection=self.categories_collection,
                error=str(e),
                kept=len(self._raw_categories),
            )
        else:
            self._raw_categories = [normalize_category(record) for record in records]
            self.categories_error = None
            self._reindex()
            logger.debug("categories_refreshed", count=len(self._raw_categories))
        finally:
            self.categories_loading = False
            self._notify()
        return self._categories

    async def add_category(
        self,
        name: str,
        description: str = "",
        icon: str = "📁",
        is_featured: bool = False,
    ) -> str:
        with self._mutation("create_category", collection=self.categories_collection):
            self._require_auth("create_category")
            draft = CategoryDraft.parse(
                {"name": name, "description": description, "icon": icon, "is_featured": is_featured}
            )
            now = self._now()
            record = {**draft.to_record(), "tutorialCount": 0, "createdAt": now, "updatedAt": now}
            category_id = await self._documents.insert(self.categories_collection, record)

        logger.info("category_created", category_id=category_id, name=draft.name)
        await self.refresh_categories()
        return category_id

    async def update_category(self, category_id: str, partial: CategoryPatch | Mapping[str, Any]) -> None:
        """Patch a category. Tutorials pointing at it are left untouched."""
        with self._mutation("update_category", collection=self.categories_collection, document_id=category_id):
            self._require_auth("update_category")
            patch = CategoryPatch.parse(partial)
            await self._documents.patch(
                self.categories_collection,
                category_id,
                {**patch.to_record(), "updatedAt": self._now()},
            )

        logger.info("category_updated", category_id=category_id)
        await self.refresh_categories()

    async def delete_category(self, category_id: str) -> None:
        """Delete a category. Its tutorials keep their ``category`` value."""
        with self._mutation("delete_category", collection=self.categories_collection, document_id=category_id):
            self._require_auth("delete_category")
            await self._documents.remove(self.categories_collection, category_id)

        logger.info("category_deleted", category_id=category_id)
        await self.refresh_categories()


__all__ = ["CATEGORIES_LOAD_ERROR", "TUTORIALS_LOAD_ERROR", "TutorialStore"]
