"""Stateful stores: the tutorial mirror, the favorites set and useful links."""

from bootpedia.stores.favorites import FavoritesStore
from bootpedia.stores.links import LinkStore
from bootpedia.stores.tutorials import TutorialStore

__all__ = ["FavoritesStore", "LinkStore", "TutorialStore"]
