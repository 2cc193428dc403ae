"""Collection storage backends."""

from .base import (
    BaseCollection,
    Record,
    COLLECTION_KEYS,
    COLLECTION_NAMES,
    COLLECTION_UNIQUE_FIELDS,
)
from .collection_memory import MemoryCollection
from .collection_redis import RedisCollection
from .connection import StorageConnection
from .factory import StorageFactory

__all__ = [
    "BaseCollection",
    "Record",
    "COLLECTION_KEYS",
    "COLLECTION_NAMES",
    "COLLECTION_UNIQUE_FIELDS",
    "MemoryCollection",
    "RedisCollection",
    "StorageConnection",
    "StorageFactory",
]
