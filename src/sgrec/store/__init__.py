"""
Store module for SoundGraph recommendations.

This module provides the catalog interface the engine reads from, with an
in-memory implementation and a local SQLite snapshot.
"""

from .catalog_store import CatalogStore, InMemoryCatalogStore
from .sqlite_store import SQLiteCatalogStore

__all__ = ["CatalogStore", "InMemoryCatalogStore", "SQLiteCatalogStore"]
