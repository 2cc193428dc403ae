"""Storage factory for centralized collection creation."""

from typing import Callable, Dict, Optional

from .base import BaseCollection, COLLECTION_KEYS, COLLECTION_NAMES, COLLECTION_UNIQUE_FIELDS
from .connection import StorageConnection
from ..config import StorageConfig


class StorageFactory:
    """Build the six record collections for a configured backend."""

    _backends: Dict[str, Callable[..., BaseCollection]] = {}

    ALLOWED_BACKENDS = {"memory", "redis"}

    @classmethod
    def register_backend(cls, name: str, loader: Callable[..., BaseCollection]) -> None:
        """Register a collection backend.

        Args:
            name: Backend name (must be in ALLOWED_BACKENDS)
            loader: Callable building one collection from (name, key_field, unique_fields, **kwargs)

        Raises:
            ValueError: If backend name not in allowed list
        """
        if name not in cls.ALLOWED_BACKENDS:
            raise ValueError(f"Backend {name} not in allowed backends: {cls.ALLOWED_BACKENDS}")
        cls._backends[name] = loader

    @classmethod
    def create_collection(cls, backend: str, name: str, **kwargs) -> BaseCollection:
        """Create one collection instance.

        Raises:
            ValueError: If backend is unknown or name is not a known collection
        """
        if backend not in cls._backends:
            raise ValueError(f"Unknown collection backend: {backend}. Available: {sorted(cls._backends)}")
        if name not in COLLECTION_KEYS:
            raise ValueError(f"Unknown collection: {name}. Available: {list(COLLECTION_NAMES)}")

        return cls._backends[backend](
            name=name,
            key_field=COLLECTION_KEYS[name],
            unique_fields=COLLECTION_UNIQUE_FIELDS.get(name, ()),
            **kwargs,
        )

    @classmethod
    def create_collections(
        cls,
        config: StorageConfig,
        connection: Optional[StorageConnection] = None,
    ) -> Dict[str, BaseCollection]:
        """Create every known collection, keyed by name in replay order."""
        kwargs = {}
        if config.backend == "redis":
            if connection is None:
                raise ValueError("Redis collections require a StorageConnection")
            kwargs = {"connection": connection, "key_prefix": config.redis_key_prefix}

        return {
            name: cls.create_collection(config.backend, name, **kwargs)
            for name in COLLECTION_NAMES
        }


def _register_backends():
    """Register built-in backends with lazy loaders."""

    def _memory(**kwargs):
        from .collection_memory import MemoryCollection
        return MemoryCollection(**kwargs)

    def _redis(**kwargs):
        from .collection_redis import RedisCollection
        return RedisCollection(**kwargs)

    StorageFactory.register_backend("memory", _memory)
    StorageFactory.register_backend("redis", _redis)


_register_backends()
