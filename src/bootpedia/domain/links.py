"""Useful-link grouping and default-link seeding.

Links are shown grouped by ``theme``. Within a theme they keep the order of
the ``order`` field, and themes appear in the order their first link does.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import DocumentStore, Predicate
from bootpedia.core.timestamps import utc_now
from bootpedia.domain.models import UsefulLink, UsefulLinkDraft

logger = get_logger(__name__)

DEFAULT_LINKS: tuple[UsefulLinkDraft, ...] = (
    UsefulLinkDraft(
        name="Hiren's BootCD",
        description="Official download and information for Hiren's BootCD",
        url="https://www.hirensbootcd.org/",
        icon="💿",
        category="Main tool",
        theme="tools",
        order=1,
        is_active=True,
    ),
)


def sort_links(links: Iterable[UsefulLink]) -> list[UsefulLink]:
    """Order links by ``order``; ties keep a stable id order."""
    return sorted(links, key=lambda link: (link.order, link.id))


def group_by_theme(links: Iterable[UsefulLink]) -> dict[str, list[UsefulLink]]:
    """Group already-ordered links by theme.

    >>> group_by_theme([])
    {}
    """
    grouped: dict[str, list[UsefulLink]] = {}
    for link in links:
        grouped.setdefault(link.theme, []).append(link)
    return grouped


async def seed_default_links(
    documents: DocumentStore,
    collection: str = "usefulLinks",
    defaults: Sequence[UsefulLinkDraft] = DEFAULT_LINKS,
) -> list[str]:
    """Add every default link whose URL is not stored yet.

    Safe to run repeatedly. A failure on one link is logged and the remaining
    ones are still attempted.

    Returns:
        Names of the links added by this call.
    """
    created: list[str] = []
    for draft in defaults:
        try:
            existing = await documents.query_once(collection, [Predicate("url", "==", draft.url)])
            if existing:
                logger.debug("link_seed_skipped", name=draft.name, url=draft.url)
                continue

            now = utc_now()
            link_id = await documents.insert(collection, {**draft.to_record(), "createdAt": now, "updatedAt": now})
            created.append(draft.name)
            logger.info("link_seeded", name=draft.name, link_id=link_id)
        except Exception as e:
            logger.error("link_seed_failed", name=draft.name, error=str(e))

    return created


__all__ = ["DEFAULT_LINKS", "group_by_theme", "seed_default_links", "sort_links"]
