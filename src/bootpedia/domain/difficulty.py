"""Difficulty levels and free-text label normalization.

Tutorials arrive from editors and older records with labels such as
``"basic"``, ``"Iniciante"`` or ``"AVANÇADO"``. ``normalize_difficulty`` folds
all of them onto the closed ``Difficulty`` enum. It runs for every record of
every snapshot, so it never raises: anything unrecognised is ``BEGINNER``.
"""

from __future__ import annotations

import unicodedata
from enum import Enum
from typing import Any


class Difficulty(str, Enum):
    """Canonical skill levels."""

    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# Keys are accent-stripped and casefolded, see _fold()
_SYNONYMS: dict[str, Difficulty] = {
    # English
    "beginner": Difficulty.BEGINNER,
    "basic": Difficulty.BEGINNER,
    "easy": Difficulty.BEGINNER,
    "intermediate": Difficulty.INTERMEDIATE,
    "medium": Difficulty.INTERMEDIATE,
    "advanced": Difficulty.ADVANCED,
    "expert": Difficulty.ADVANCED,
    "hard": Difficulty.ADVANCED,
    # Portuguese
    "iniciante": Difficulty.BEGINNER,
    "basico": Difficulty.BEGINNER,
    "facil": Difficulty.BEGINNER,
    "intermediario": Difficulty.INTERMEDIATE,
    "intermedio": Difficulty.INTERMEDIATE,
    "medio": Difficulty.INTERMEDIATE,
    "avancado": Difficulty.ADVANCED,
    "dificil": Difficulty.ADVANCED,
}

_LABELS: dict[str, dict[Difficulty, str]] = {
    "en": {
        Difficulty.BEGINNER: "Beginner",
        Difficulty.INTERMEDIATE: "Intermediate",
        Difficulty.ADVANCED: "Advanced",
    },
    "pt": {
        Difficulty.BEGINNER: "Iniciante",
        Difficulty.INTERMEDIATE: "Intermediário",
        Difficulty.ADVANCED: "Avançado",
    },
}


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.strip())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def normalize_difficulty(value: Any) -> Difficulty:
    """Map any label to a canonical ``Difficulty`` (``BEGINNER`` if unknown).

    >>> normalize_difficulty("Básico")
    <Difficulty.BEGINNER: 'Beginner'>
    >>> normalize_difficulty("  EXPERT ")
    <Difficulty.ADVANCED: 'Advanced'>
    >>> normalize_difficulty(None)
    <Difficulty.BEGINNER: 'Beginner'>
    """
    if isinstance(value, Difficulty):
        return value
    if not isinstance(value, str):
        return Difficulty.BEGINNER
    return _SYNONYMS.get(_fold(value), Difficulty.BEGINNER)


def difficulty_label(value: Any, locale: str = "en") -> str:
    """Localized display label for a difficulty (``en`` or ``pt``)."""
    labels = _LABELS.get(locale.split("-")[0].lower(), _LABELS["en"])
    return labels[normalize_difficulty(value)]


__all__ = ["Difficulty", "difficulty_label", "normalize_difficulty"]
