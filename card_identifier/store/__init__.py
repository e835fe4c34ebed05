"""Storage package for the owned-card collection."""

from .collection import CollectionEntry, CollectionStore

__all__ = ["CollectionStore", "CollectionEntry"]
