"""Domain models for tutorials, categories and useful links.

Two families live here:

- **Mirrored state** (``Tutorial``, ``Category``, ``UsefulLink``): frozen
  dataclasses built only by :mod:`bootpedia.domain.normalize` from raw remote
  records, so every instance already satisfies the invariants (canonical
  difficulty, tuples instead of missing lists, concrete timestamps).
- **Caller input** (``TutorialDraft``, ``TutorialPatch``, ``CategoryDraft``,
  ``CategoryPatch``, ``UsefulLinkDraft``, ``UsefulLinkPatch``,
  ``SearchFilters``): pydantic models that validate what admins and search
  boxes send before anything reaches the remote store.
  Remote records use camelCase field names; ``to_record()`` produces them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from bootpedia.core.errors import ValidationError
from bootpedia.domain.difficulty import Difficulty, normalize_difficulty

# ---------------------------------------------------------------------------
# Mirrored state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Tutorial:
    """One tutorial as mirrored from the remote store."""

    id: str
    title: str
    description: str
    content: str
    category: str
    author: str
    created_at: datetime
    updated_at: datetime
    views: int
    difficulty: Difficulty
    estimated_time: int
    keywords: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    os_compatibility: tuple[str, ...] = ()
    image_url: str = ""
    video_url: str = ""
    version: str = ""


@dataclass(frozen=True)
class Category:
    """A tutorial grouping. ``tutorial_count`` is derived locally."""

    id: str
    name: str
    description: str
    icon: str
    tutorial_count: int = 0
    is_featured: bool = False


@dataclass(frozen=True)
class UsefulLink:
    """An external resource listed on the useful-links page."""

    id: str
    name: str
    description: str
    url: str
    icon: str
    category: str
    theme: str
    order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class Adjacent(NamedTuple):
    """Neighbours of a tutorial in the mirrored ordering."""

    previous: Tutorial | None
    next: Tutorial | None


@dataclass(frozen=True)
class SearchResult:
    """Search output together with the filters that produced it."""

    tutorials: tuple[Tutorial, ...]
    total: int
    filters: SearchFilters


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------

M = TypeVar("M", bound="RecordModel")


class RecordModel(BaseModel):
    """Base for input models serialised to camelCase remote records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    @classmethod
    def parse(cls: type[M], data: M | Mapping[str, Any]) -> M:
        """Validate ``data``, raising the data layer's ``ValidationError``."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValidationError(
                f"Invalid {cls.__name__} data: {fields}",
                errors=e.errors(include_url=False),
                cause=e,
            ) from e

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def _difficulty(value: Any) -> Any:
    return None if value is None else normalize_difficulty(value)


class TutorialDraft(RecordModel):
    """Fields an admin supplies when creating a tutorial."""

    title: str = Field(min_length=1)
    description: str = ""
    content: str = ""
    category: str = "general"
    author: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    estimated_time: int = Field(default=5, ge=0)
    keywords: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    os_compatibility: list[str] = Field(default_factory=list)
    image_url: str = ""
    video_url: str = ""
    version: str = ""

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty_label(cls, value: Any) -> Any:
        return _difficulty(value)


class TutorialPatch(RecordModel):
    """Partial tutorial update; only fields that are set are written."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    content: str | None = None
    category: str | None = None
    author: str | None = None
    difficulty: Difficulty | None = None
    estimated_time: int | None = Field(default=None, ge=0)
    keywords: list[str] | None = None
    tags: list[str] | None = None
    os_compatibility: list[str] | None = None
    image_url: str | None = None
    video_url: str | None = None
    version: str | None = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty_label(cls, value: Any) -> Any:
        return _difficulty(value)


class CategoryDraft(RecordModel):
    """Fields supplied when creating a category."""

    name: str = Field(min_length=1)
    description: str = ""
    icon: str = "📁"
    is_featured: bool = False


class CategoryPatch(RecordModel):
    """Partial category update."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    icon: str | None = None
    is_featured: bool | None = None


class UsefulLinkDraft(RecordModel):
    """Fields supplied when adding a useful link."""

    name: str = Field(min_length=1)
    description: str = ""
    url: str = Field(min_length=1)
    icon: str = "🔗"
    category: str = ""
    theme: str = Field(default="tools", min_length=1)
    order: int = Field(default=0, ge=0)
    is_active: bool = True


class UsefulLinkPatch(RecordModel):
    """Partial useful-link update."""

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    url: str | None = Field(default=None, min_length=1)
    icon: str | None = None
    category: str | None = None
    theme: str | None = Field(default=None, min_length=1)
    order: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class SearchFilters(BaseModel):
    """Structured search filters; every unset filter matches everything."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    category: str | None = None
    difficulty: Difficulty | None = None
    tags: list[str] = Field(default_factory=list)
    time_range: str | None = None

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty_label(cls, value: Any) -> Any:
        # A blank box means "any difficulty"
        if isinstance(value, str) and not value.strip():
            return None
        return _difficulty(value)


__all__ = [
    "Adjacent",
    "Category",
    "CategoryDraft",
    "CategoryPatch",
    "SearchFilters",
    "SearchResult",
    "Tutorial",
    "TutorialDraft",
    "TutorialPatch",
    "UsefulLink",
    "UsefulLinkDraft",
    "UsefulLinkPatch",
]
