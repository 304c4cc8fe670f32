"""
Bootpedia - client-side data layer for a boot-tools tutorial site.

The site keeps its tutorials and categories in a remote document store and
its screenshots in a blob store. This package mirrors the tutorials into
local reactive state, derives the category index, searches the mirror,
keeps a locally persisted favorites set and resolves image identifiers to
URLs through a TTL cache.

Architecture::

    core/       errors, logging, settings, protocols, cache, retry
    domain/     Tutorial / Category models, normalization, search, categories
    stores/     TutorialStore (remote mirror), FavoritesStore (local set)
    images/     ImageUrlResolver + ImageHandle
    adapters/   in-memory and JSON-file collaborators
    cli/        ``bootpedia`` operator commands
"""

__version__ = "0.1.0"

from bootpedia.images import ImageHandle, ImageState, ImageUrlResolver
from bootpedia.stores import FavoritesStore, TutorialStore

__all__ = [
    "FavoritesStore",
    "ImageHandle",
    "ImageState",
    "ImageUrlResolver",
    "TutorialStore",
    "__version__",
]
