"""
Image URL resolution with a TTL cache, retry and per-handle cancellation.

Tutorial records carry an image *identifier* (a file name in the blob store)
or, for older records, a full URL. Rendering needs a fetchable URL, which the
blob store signs on request. The resolver turns identifiers into URLs and
keeps them for the cache TTL so a page full of cards costs one call per
image, not one per render.

Architecture:
    ::

        ImageHandle (one per rendered image)
          set_identifier / retry ──► _start()
                                       │ blank     → IDLE, ""
                                       │ http(s):// → RESOLVED, unchanged
                                       │ cache hit → RESOLVED
                                       ▼
                                   task: resolver.fetch(identifier)
                                       │   RetryContext(LinearBackoff)
                                       │     blob_store.resolve_url(prefix + id)
                                       ▼
                                   RESOLVED (url cached) | FAILED (error)

        A newer request, ``close()`` or ``set_identifier()`` cancels the task
        and bumps the handle's generation; a finished task whose generation
        is stale is ignored (last request wins).

        Handles watching the same identifier share one blob-store request;
        it is cancelled only when every handle waiting on it has let go.

Retry policy:
    Transient blob-store errors (``retry-limit-exceeded``, ``network``, a
    message mentioning "network") are retried up to ``max_attempts`` attempts
    in total with waits of 1s, 2s, ... Missing objects and permission
    errors fail at once.

Examples:
    >>> resolver = ImageUrlResolver(blob_store)
    >>> url = await resolver.resolve("grub-rescue.png")
    >>> handle = resolver.watch("grub-rescue.png")
    >>> await handle.wait()
    <ImageState.RESOLVED: 'RESOLVED'>

Tags:
    images, cache, ttl, retry, cancellation, asyncio, bootpedia
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bootpedia.core.cache import CacheStats, ImageUrlCache
from bootpedia.core.errors import ImageResolutionError
from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import BlobStore
from bootpedia.core.retry import LinearBackoff, RetryContext, RetryStrategy
from bootpedia.core.settings import BootpediaSettings, get_settings

logger = get_logger(__name__)

URL_PREFIXES = ("http://", "https://")


class ImageState(str, Enum):
    """Resolution state of one image handle."""

    IDLE = "IDLE"
    RESOLVING = "RESOLVING"
    RESOLVED = "RESOLVED"
    FAILED = "FAILED"


def is_url(identifier: str) -> bool:
    """True for fully qualified http(s) URLs, which need no resolution."""
    return identifier.startswith(URL_PREFIXES)


def _clean(identifier: str | None) -> str:
    return identifier.strip() if identifier else ""


@dataclass
class _Flight:
    """A blob-store request shared by every caller resolving one identifier."""

    task: asyncio.Task[str]
    waiters: int = 0


class ImageUrlResolver:
    """Resolves image identifiers to URLs through a shared :class:`ImageUrlCache`.

    Args:
        blob_store: Signs object paths into URLs
        cache: Cache to use; a new one sized from settings by default
        path_prefix: Folder prepended to identifiers (``tutorials/``)
        strategy: Retry policy; ``LinearBackoff`` from settings by default
        sleep: Awaitable used for backoff waits
        settings: Source of the defaults above
    """

    def __init__(
        self,
        blob_store: BlobStore,
        cache: ImageUrlCache | None = None,
        *,
        path_prefix: str | None = None,
        strategy: RetryStrategy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        settings: BootpediaSettings | None = None,
    ):
        settings = settings or get_settings()
        self._blob_store = blob_store
        self.cache = cache or ImageUrlCache(
            ttl_seconds=settings.image_cache_ttl_seconds,
            entry_size_bytes=settings.image_cache_entry_size_bytes,
        )
        self.path_prefix = settings.image_path_prefix if path_prefix is None else path_prefix
        self.strategy = strategy or LinearBackoff(
            max_attempts=settings.image_max_attempts,
            base_delay=settings.image_retry_base_delay,
            increment=settings.image_retry_increment,
        )
        self._sleep = sleep
        self._inflight: dict[str, _Flight] = {}

    def object_path(self, identifier: str) -> str:
        return f"{self.path_prefix}{identifier}"

    def cached_url(self, identifier: str) -> str | None:
        """Fresh cached URL for ``identifier``, if any."""
        entry = self.cache.get(identifier)
        return entry.url if entry is not None else None

    async def resolve(self, identifier: str | None) -> str:
        """Return a fetchable URL for ``identifier``.

        Blank identifiers give ``""`` and URLs are returned unchanged, both
        without touching the blob store or the cache.

        Raises:
            ImageResolutionError: The blob store could not produce a URL
        """
        identifier = _clean(identifier)
        if not identifier or is_url(identifier):
            return identifier
        cached = self.cached_url(identifier)
        if cached is not None:
            return cached
        return await self.fetch(identifier)

    async def fetch(self, identifier: str) -> str:
        """Ask the blob store (with retries) and cache the result.

        Concurrent fetches of one identifier share a single request. The
        shared request is cancelled once every caller waiting on it has been
        cancelled.
        """
        flight = self._inflight.get(identifier)
        if flight is None:
            flight = _Flight(asyncio.create_task(self._fetch(identifier)))
            self._inflight[identifier] = flight
            flight.task.add_done_callback(lambda _task: self._land(identifier, flight))
        else:
            logger.debug("image_resolve_joined", identifier=identifier, waiters=flight.waiters)

        flight.waiters += 1
        try:
            return await asyncio.shield(flight.task)
        finally:
            flight.waiters -= 1
            if flight.waiters == 0 and not flight.task.done():
                self._land(identifier, flight)
                flight.task.cancel()

    def _land(self, identifier: str, flight: _Flight) -> None:
        if self._inflight.get(identifier) is flight:
            del self._inflight[identifier]

    def in_flight(self) -> int:
        """Number of identifiers with a blob-store request running."""
        return len(self._inflight)

    async def _fetch(self, identifier: str) -> str:
        path = self.object_path(identifier)

        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            logger.warning(
                "image_resolve_retry",
                identifier=identifier,
                attempt=attempt,
                delay=delay,
                error=str(error),
            )

        context = RetryContext(self.strategy, on_retry=on_retry, sleep=self._sleep)
        try:
            url = await context.run_async(self._resolve_once, path, identifier)
        except ImageResolutionError as e:
            logger.warning(
                "image_resolve_failed",
                identifier=identifier,
                kind=e.kind.value,
                attempts=context.attempts,
                error=str(e.cause or e),
            )
            raise

        self.cache.put(identifier, url)
        logger.debug("image_url_resolved", identifier=identifier, attempts=context.attempts)
        return url

    async def _resolve_once(self, path: str, identifier: str) -> str:
        try:
            return await self._blob_store.resolve_url(path)
        except Exception as e:
            raise ImageResolutionError.from_exception(e, identifier=identifier) from e

    async def prefetch(self, identifiers: Iterable[str | None]) -> int:
        """Warm the cache for many identifiers concurrently.

        Blanks, URLs, duplicates and fresh entries are skipped. A failure is
        logged and does not affect the rest of the batch.

        Returns:
            Number of entries newly cached
        """
        pending: list[str] = []
        for raw in identifiers:
            identifier = _clean(raw)
            if not identifier or is_url(identifier) or identifier in pending:
                continue
            if self.cached_url(identifier) is not None:
                continue
            pending.append(identifier)

        results = await asyncio.gather(*(self.fetch(i) for i in pending), return_exceptions=True)

        cached = 0
        for identifier, result in zip(pending, results):
            if isinstance(result, BaseException):
                logger.warning("image_prefetch_failed", identifier=identifier, error=str(result))
            else:
                cached += 1
        logger.info("image_prefetch_complete", requested=len(pending), cached=cached)
        return cached

    def sweep(self) -> int:
        """Drop expired cache entries; returns how many were removed."""
        removed = self.cache.sweep_expired()
        if removed:
            logger.debug("image_cache_swept", removed=removed)
        return removed

    def clear_cache(self, identifier: str) -> None:
        self.cache.delete(_clean(identifier))

    def stats(self) -> CacheStats:
        return self.cache.stats()

    def watch(self, identifier: str | None = None) -> ImageHandle:
        """Create a handle tracking ``identifier``. Needs a running event loop."""
        return ImageHandle(self, identifier)


class ImageHandle:
    """Resolution state for one rendered image.

    Attributes are read-only properties: ``identifier``, ``state``, ``url``
    (``""`` until resolved), ``error`` (set in ``FAILED``) and ``loading``.
    """

    def __init__(self, resolver: ImageUrlResolver, identifier: str | None = None):
        self._resolver = resolver
        self._identifier = ""
        self._state = ImageState.IDLE
        self._url = ""
        self._error: ImageResolutionError | None = None
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self.set_identifier(identifier)

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def state(self) -> ImageState:
        return self._state

    @property
    def url(self) -> str:
        return self._url

    @property
    def error(self) -> ImageResolutionError | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._state is ImageState.RESOLVING

    def set_identifier(self, identifier: str | None) -> None:
        """Track a new identifier, cancelling any resolution in flight."""
        self._cancel()
        self._identifier = _clean(identifier)
        self._url = ""
        self._error = None
        self._start()

    def retry(self) -> None:
        """Clear the error and resolve the current identifier again."""
        self._cancel()
        self._error = None
        self._start()

    def clear_cache(self) -> None:
        if self._identifier:
            self._resolver.clear_cache(self._identifier)

    def close(self) -> None:
        """Cancel the resolution in flight; its result is never applied."""
        self._cancel()
        if self._state is ImageState.RESOLVING:
            self._state = ImageState.IDLE

    async def wait(self) -> ImageState:
        """Wait for the current resolution (if any) and return the state."""
        task = self._task
        if task is not None:
            await asyncio.wait({task})
        return self._state

    def _cancel(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug("image_resolve_canceled", identifier=self._identifier)

    def _start(self) -> None:
        identifier = self._identifier
        if not identifier:
            self._state = ImageState.IDLE
            self._url = ""
            return
        if is_url(identifier):
            self._state = ImageState.RESOLVED
            self._url = identifier
            return

        cached = self._resolver.cached_url(identifier)
        if cached is not None:
            self._state = ImageState.RESOLVED
            self._url = cached
            return

        self._state = ImageState.RESOLVING
        self._url = ""
        self._task = asyncio.create_task(self._run(identifier, self._generation))

    async def _run(self, identifier: str, generation: int) -> None:
        try:
            url = await self._resolver.fetch(identifier)
        except ImageResolutionError as e:
            if generation == self._generation:
                self._state = ImageState.FAILED
                self._error = e
            return

        if generation != self._generation:
            return
        self._state = ImageState.RESOLVED
        self._url = url

    def __repr__(self) -> str:
        return f"ImageHandle({self._identifier!r}, state={self._state.value})"


__all__ = ["ImageHandle", "ImageState", "ImageUrlResolver", "URL_PREFIXES", "is_url"]
