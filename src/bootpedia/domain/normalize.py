"""Build mirrored ``Tutorial``/``Category``/``UsefulLink`` objects from raw records.

Remote records are written by several generations of admin forms and import
scripts, so any field may be missing or oddly typed. Normalization never
fails on bad data: it substitutes a default and moves on, because a single
malformed record must not blank the whole collection.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from bootpedia.core.protocols import DocumentRecord
from bootpedia.core.timestamps import coerce_datetime, utc_now
from bootpedia.domain.difficulty import normalize_difficulty
from bootpedia.domain.models import Category, Tutorial, UsefulLink

DEFAULT_TITLE = "Untitled"
DEFAULT_DESCRIPTION = "No description"
DEFAULT_CATEGORY = "general"
DEFAULT_AUTHOR = "Unknown author"
DEFAULT_ESTIMATED_TIME = 5
DEFAULT_CATEGORY_NAME = "Unnamed category"
DEFAULT_CATEGORY_ICON = "📁"
DEFAULT_LINK_NAME = "Untitled link"
DEFAULT_LINK_ICON = "🔗"
DEFAULT_LINK_THEME = "tools"


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value)
    return text if text else default


def _strings(value: Any) -> tuple[str, ...]:
    if value is None or isinstance(value, (str, bytes, Mapping)):
        return ()
    try:
        return tuple(str(item) for item in value if item is not None)
    except TypeError:
        return ()


def _count(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(number, 0)


def normalize_tutorial(
    record: DocumentRecord,
    *,
    now: Callable[[], datetime] = utc_now,
) -> Tutorial:
    """Normalize one raw tutorial record.

    Missing text falls back to the ``DEFAULT_*`` constants, missing lists to
    empty tuples, missing or unreadable timestamps to ``now()``, and the
    difficulty goes through :func:`normalize_difficulty`.
    """
    data = record.data
    created_at = coerce_datetime(data.get("createdAt")) or now()
    updated_at = coerce_datetime(data.get("updatedAt")) or now()

    return Tutorial(
        id=record.id,
        title=_text(data.get("title"), DEFAULT_TITLE),
        description=_text(data.get("description"), DEFAULT_DESCRIPTION),
        content=_text(data.get("content")),
        category=_text(data.get("category"), DEFAULT_CATEGORY),
        author=_text(data.get("author"), DEFAULT_AUTHOR),
        created_at=created_at,
        updated_at=updated_at,
        views=_count(data.get("views")),
        difficulty=normalize_difficulty(data.get("difficulty")),
        estimated_time=_count(data.get("estimatedTime"), DEFAULT_ESTIMATED_TIME),
        keywords=_strings(data.get("keywords")),
        tags=_strings(data.get("tags")),
        os_compatibility=_strings(data.get("osCompatibility")),
        image_url=_text(data.get("imageUrl")),
        video_url=_text(data.get("videoUrl")),
        version=_text(data.get("version")),
    )


def normalize_tutorials(
    records: Iterable[DocumentRecord],
    *,
    now: Callable[[], datetime] = utc_now,
) -> list[Tutorial]:
    """Normalize a snapshot's records, preserving their order."""
    return [normalize_tutorial(record, now=now) for record in records]


def normalize_category(record: DocumentRecord) -> Category:
    """Normalize one raw category record.

    The stored ``tutorialCount`` is ignored; counts are derived locally.
    """
    data = record.data
    return Category(
        id=record.id,
        name=_text(data.get("name"), DEFAULT_CATEGORY_NAME),
        description=_text(data.get("description"), DEFAULT_DESCRIPTION),
        icon=_text(data.get("icon"), DEFAULT_CATEGORY_ICON),
        is_featured=bool(data.get("isFeatured", False)),
    )


def normalize_link(
    record: DocumentRecord,
    *,
    now: Callable[[], datetime] = utc_now,
) -> UsefulLink:
    """Normalize one raw useful-link record. Only ``isActive: true`` is active."""
    data = record.data
    return UsefulLink(
        id=record.id,
        name=_text(data.get("name"), DEFAULT_LINK_NAME),
        description=_text(data.get("description")),
        url=_text(data.get("url")),
        icon=_text(data.get("icon"), DEFAULT_LINK_ICON),
        category=_text(data.get("category")),
        theme=_text(data.get("theme"), DEFAULT_LINK_THEME),
        order=_count(data.get("order")),
        is_active=data.get("isActive") is True,
        created_at=coerce_datetime(data.get("createdAt")) or now(),
        updated_at=coerce_datetime(data.get("updatedAt")) or now(),
    )


__all__ = [
    "DEFAULT_AUTHOR",
    "DEFAULT_CATEGORY",
    "DEFAULT_DESCRIPTION",
    "DEFAULT_ESTIMATED_TIME",
    "DEFAULT_TITLE",
    "normalize_category",
    "normalize_link",
    "normalize_tutorial",
    "normalize_tutorials",
]
