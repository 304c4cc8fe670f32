"""Category index derivation, display helpers and default-category seeding.

The remote ``categories`` collection stores a ``tutorialCount`` that nobody
keeps current. The count callers see is always re-derived from the mirrored
tutorial collection by :func:`derive_category_index`, a pure function of its
two inputs that the store invokes whenever either of them changes.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import replace

from bootpedia.core.logging import get_logger
from bootpedia.core.protocols import DocumentStore, Predicate
from bootpedia.core.timestamps import utc_now
from bootpedia.domain.models import Category, CategoryDraft, Tutorial

logger = get_logger(__name__)


def derive_category_index(
    categories: Iterable[Category],
    tutorials: Iterable[Tutorial],
) -> tuple[Category, ...]:
    """Return ``categories`` with ``tutorial_count`` set from ``tutorials``."""
    counts = Counter(tutorial.category for tutorial in tutorials)
    return tuple(replace(category, tutorial_count=counts.get(category.id, 0)) for category in categories)


def format_category_name(category: str) -> str:
    """Turn a category slug into a display name.

    >>> format_category_name("data-recovery")
    'Data Recovery'
    >>> format_category_name("BACKUP_clone")
    'Backup Clone'
    """
    words = category.replace("-", " ").replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


DEFAULT_CATEGORIES: tuple[CategoryDraft, ...] = (
    CategoryDraft(
        name="BCD/MBR Tools",
        description="Tools to repair and manage the Boot Configuration Data and Master Boot Record",
        icon="🔧",
        is_featured=True,
    ),
    CategoryDraft(
        name="Data Recovery",
        description="Tools to recover lost or corrupted data",
        icon="💾",
        is_featured=True,
    ),
    CategoryDraft(
        name="Disk Defrag",
        description="Tools to defragment and optimize disks",
        icon="🗄️",
    ),
    CategoryDraft(
        name="Partition Tools",
        description="Tools to manage and manipulate partitions",
        icon="📊",
        is_featured=True,
    ),
    CategoryDraft(
        name="Password Recovery",
        description="Tools to recover system passwords",
        icon="🔑",
    ),
    CategoryDraft(
        name="System Repair",
        description="Tools to diagnose and repair the system",
        icon="🔨",
        is_featured=True,
    ),
    CategoryDraft(
        name="Network Tools",
        description="Tools to diagnose and configure networks",
        icon="🌐",
    ),
    CategoryDraft(
        name="Antivirus",
        description="Security and malware removal tools",
        icon="🛡️",
        is_featured=True,
    ),
    CategoryDraft(
        name="Backup & Clone",
        description="Tools to back up and clone disks",
        icon="💿",
    ),
    CategoryDraft(
        name="Hardware Info",
        description="Tools to inspect hardware",
        icon="🖥️",
    ),
)


async def seed_default_categories(
    documents: DocumentStore,
    collection: str = "categories",
    defaults: Sequence[CategoryDraft] = DEFAULT_CATEGORIES,
) -> list[str]:
    """Create every default category whose name is not taken yet.

    Safe to run repeatedly. A failure on one category is logged and the
    remaining ones are still attempted.

    Returns:
        Names of the categories created by this call.
    """
    created: list[str] = []
    for draft in defaults:
        try:
            existing = await documents.query_once(collection, [Predicate("name", "==", draft.name)])
            if existing:
                logger.debug("category_seed_skipped", name=draft.name)
                continue

            now = utc_now().isoformat()
            record = {**draft.to_record(), "tutorialCount": 0, "createdAt": now, "updatedAt": now}
            category_id = await documents.insert(collection, record)
            created.append(draft.name)
            logger.info("category_seeded", name=draft.name, category_id=category_id)
        except Exception as e:
            logger.error("category_seed_failed", name=draft.name, error=str(e))

    return created


def category_status(categories: Iterable[Category]) -> list[str]:
    """One human-readable status line per category."""
    return [
        f"{category.name} ({category.tutorial_count} tutorials){' ⭐' if category.is_featured else ''}"
        for category in categories
    ]


__all__ = [
    "DEFAULT_CATEGORIES",
    "category_status",
    "derive_category_index",
    "format_category_name",
    "seed_default_categories",
]
