from .base import BaseStorageQuerySet, StorageHit, StorageProvider
from .inmemory import InMemoryProvider

__all__ = [
    "BaseStorageQuerySet",
    "InMemoryProvider",
    "StorageHit",
    "StorageProvider",
]
