"""Search over the mirrored tutorial collection.

``search`` is a pure filter: it never reorders, never mutates and can be
re-run on every keystroke. Free text and the structured filters are ANDed.

==============  =============================================================
query           case-insensitive substring of title, description, author,
                any tag or any keyword; blank matches everything
category        exact match on ``Tutorial.category``
difficulty      exact match on the canonical difficulty
tags            any requested tag is a case-insensitive substring of any
                tutorial tag
time_range      ``week`` (≤ 7 days), ``month`` (≤ 30), ``year`` (≤ 365);
                any other value matches everything
==============  =============================================================
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from bootpedia.core.timestamps import utc_now
from bootpedia.domain.models import SearchFilters, SearchResult, Tutorial

TIME_RANGE_DAYS: dict[str, int] = {
    "week": 7,
    "month": 30,
    "year": 365,
}

Predicate = Callable[[Tutorial], bool]


def _matches_query(tutorial: Tutorial, query: str) -> bool:
    return (
        query in tutorial.title.lower()
        or query in tutorial.description.lower()
        or query in tutorial.author.lower()
        or any(query in tag.lower() for tag in tutorial.tags)
        or any(query in keyword.lower() for keyword in tutorial.keywords)
    )


def _matches_tags(tutorial: Tutorial, wanted: Sequence[str]) -> bool:
    return any(tag in own.lower() for tag in wanted for own in tutorial.tags)


def age_in_days(tutorial: Tutorial, now: datetime) -> int:
    """Whole days elapsed since the tutorial was created."""
    return (now - tutorial.created_at).days


def coerce_filters(filters: SearchFilters | Mapping[str, Any] | None) -> SearchFilters:
    if filters is None:
        return SearchFilters()
    if isinstance(filters, SearchFilters):
        return filters
    return SearchFilters.model_validate(filters)


def build_predicates(
    query: str | None,
    filters: SearchFilters,
    now: datetime,
) -> list[Predicate]:
    """Translate query and filters into the list of active predicates."""
    predicates: list[Predicate] = []

    text = (query or "").strip().lower()
    if text:
        predicates.append(lambda t: _matches_query(t, text))

    if filters.category:
        category = filters.category
        predicates.append(lambda t: t.category == category)

    if filters.difficulty:
        difficulty = filters.difficulty
        predicates.append(lambda t: t.difficulty == difficulty)

    wanted_tags = [tag.lower() for tag in filters.tags if tag]
    if wanted_tags:
        predicates.append(lambda t: _matches_tags(t, wanted_tags))

    max_age = TIME_RANGE_DAYS.get(filters.time_range or "")
    if max_age is not None:
        predicates.append(lambda t: age_in_days(t, now) <= max_age)

    return predicates


def search(
    tutorials: Iterable[Tutorial],
    query: str | None = "",
    filters: SearchFilters | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> list[Tutorial]:
    """Return the tutorials matching ``query`` and ``filters``, in input order."""
    predicates = build_predicates(query, coerce_filters(filters), now or utc_now())
    return [t for t in tutorials if all(predicate(t) for predicate in predicates)]


def run_search(
    tutorials: Iterable[Tutorial],
    query: str | None = "",
    filters: SearchFilters | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> SearchResult:
    """Like :func:`search` but wrapped with the total and effective filters."""
    effective = coerce_filters(filters)
    matches = search(tutorials, query, effective, now=now)
    return SearchResult(tutorials=tuple(matches), total=len(matches), filters=effective)


__all__ = ["TIME_RANGE_DAYS", "age_in_days", "build_predicates", "run_search", "search"]
