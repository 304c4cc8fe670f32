"""Bootpedia domain -- tutorial, category and link models plus pure projections.

Modules
-------
models        Tutorial / Category / UsefulLink state, pydantic input models
difficulty    Difficulty enum, label normalization, localized labels
normalize     raw remote record -> Tutorial / Category / UsefulLink
search        free-text and structured filtering
categories    category index derivation, display names, default seeding
links         useful-link ordering, theme grouping, default seeding
"""

from bootpedia.domain.categories import derive_category_index, format_category_name
from bootpedia.domain.difficulty import Difficulty, difficulty_label, normalize_difficulty
from bootpedia.domain.models import (
    Adjacent,
    Category,
    CategoryDraft,
    CategoryPatch,
    SearchFilters,
    SearchResult,
    Tutorial,
    TutorialDraft,
    TutorialPatch,
    UsefulLink,
    UsefulLinkDraft,
    UsefulLinkPatch,
)
from bootpedia.domain.search import run_search, search

__all__ = [
    "Adjacent",
    "Category",
    "CategoryDraft",
    "CategoryPatch",
    "Difficulty",
    "SearchFilters",
    "SearchResult",
    "Tutorial",
    "TutorialDraft",
    "TutorialPatch",
    "UsefulLink",
    "UsefulLinkDraft",
    "UsefulLinkPatch",
    "derive_category_index",
    "difficulty_label",
    "format_category_name",
    "normalize_difficulty",
    "run_search",
    "search",
]
