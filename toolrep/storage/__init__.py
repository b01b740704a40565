"""Storage backends for persisting tools, scores and source status.

This module provides:
- CatalogStore: Abstract base class for the persistent store
- FileStore: JSON file implementation
"""

from toolrep.storage.base import CatalogStore
from toolrep.storage.file_store import FileStore

__all__ = [
    "CatalogStore",
    "FileStore",
]
