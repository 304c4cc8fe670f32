"""
Link store - query and maintain the useful-links collection.

Unlike tutorials, links are not mirrored: every read is a one-shot query, so
a page always shows what the remote store holds at that moment.

Failure policy:
    - reads and mutations raise (``BootpediaError`` passes through, anything
      else becomes ``UnknownError``)
    - add/update/delete need a signed-in actor

Examples:
    >>> links = LinkStore(documents, auth)
    >>> await links.get_links("tools")
    {'tools': [UsefulLink(id=..., name="Hiren's BootCD", ...)]}

Tags:
    store, links, query, bootpedia
"""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator, Mapping
from datetime import datetime
from typing import Any

from bootpedia.core.errors import UnauthorizedError, wrap_error
from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import AuthProvider, DocumentStore, Predicate
from bootpedia.core.settings import BootpediaSettings, get_settings
from bootpedia.core.timestamps import utc_now
from bootpedia.domain.links import group_by_theme, sort_links
from bootpedia.domain.models import UsefulLink, UsefulLinkDraft, UsefulLinkPatch
from bootpedia.domain.normalize import normalize_link

logger = get_logger(__name__)


class LinkStore:
    """Reads and writes useful links.

    Args:
        documents: Remote document store
        auth: Tells whether an actor is signed in
        settings: Collection name; defaults to :func:`get_settings`
        now: Clock used for ``createdAt``/``updatedAt``
    """

    def __init__(
        self,
        documents: DocumentStore,
        auth: AuthProvider,
        *,
        settings: BootpediaSettings | None = None,
        now: Callable[[], datetime] = utc_now,
    ):
        settings = settings or get_settings()
        self._documents = documents
        self._auth = auth
        self._now = now
        self.collection = settings.links_collection

    @contextlib.contextmanager
    def _operation(self, operation: str, **context: Any) -> Iterator[None]:
        try:
            yield
        except Exception as e:
            error = wrap_error(e, f"Could not {operation.replace('_', ' ')}", operation=operation, **context)
            logger.error(
                "link_operation_failed",
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

    async def list_links(self, theme: str | None = None) -> list[UsefulLink]:
        """Active links ordered by ``order``, optionally for one theme only."""
        predicates = [Predicate("isActive", "==", True)]
        if theme:
            predicates.append(Predicate("theme", "==", theme))

        with self._operation("load_links", collection=self.collection, theme=theme):
            records = await self._documents.query_once(self.collection, predicates)

        # 1 == True for the query predicate; only a stored boolean counts
        normalized = (normalize_link(record, now=self._now) for record in records)
        links = sort_links(link for link in normalized if link.is_active)
        logger.debug("links_loaded", theme=theme, count=len(links))
        return links

    async def get_links(self, theme: str | None = None) -> dict[str, list[UsefulLink]]:
        """Active links grouped by theme; see :meth:`list_links`."""
        return group_by_theme(await self.list_links(theme))

    async def add(self, data: UsefulLinkDraft | Mapping[str, Any]) -> str:
        """Add a link and return its id.

        Raises:
            UnauthorizedError: No signed-in actor
            ValidationError: ``data`` violates a field constraint
        """
        with self._operation("add_link", collection=self.collection):
            self._require_auth("add_link")
            draft = UsefulLinkDraft.parse(data)
            now = self._now()
            link_id = await self._documents.insert(
                self.collection, {**draft.to_record(), "createdAt": now, "updatedAt": now}
            )

        logger.info("link_added", link_id=link_id, name=draft.name, theme=draft.theme)
        return link_id

    async def update(self, link_id: str, partial: UsefulLinkPatch | Mapping[str, Any]) -> None:
        """Patch a link and stamp ``updatedAt``."""
        with self._operation("update_link", collection=self.collection, document_id=link_id):
            self._require_auth("update_link")
            patch = UsefulLinkPatch.parse(partial)
            record = {**patch.to_record(), "updatedAt": self._now()}
            await self._documents.patch(self.collection, link_id, record)

        logger.info("link_updated", link_id=link_id, fields=sorted(record))

    async def delete(self, link_id: str) -> None:
        with self._operation("delete_link", collection=self.collection, document_id=link_id):
            self._require_auth("delete_link")
            await self._documents.remove(self.collection, link_id)

        logger.info("link_deleted", link_id=link_id)


__all__ = ["LinkStore"]
