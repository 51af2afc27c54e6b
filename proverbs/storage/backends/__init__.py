"""Pluggable storage backends.

Provides one contract over three storage paradigms:

- **SQLiteBackend**: relational, tags in a join table
- **MongoBackend**: document-oriented, tags as a native array field
- **LMDBBackend**: embedded ordered key-value store with its own tag index

The variant is chosen from configuration at startup via ``create_backend``.
"""

from proverbs.core.exceptions import ConfigError
from proverbs.storage.config import StoreSettings

from .base import BaseBackend, BulkLoadScope
from .lmdb import LMDBBackend
from .mongodb import MongoBackend
from .sqlite import SQLiteBackend

BACKENDS: dict[str, type[BaseBackend]] = {
    SQLiteBackend.name: SQLiteBackend,
    MongoBackend.name: MongoBackend,
    LMDBBackend.name: LMDBBackend,
}


def create_backend(settings: StoreSettings) -> BaseBackend:
    """Construct the configured backend without opening it."""
    if settings.backend == "sqlite":
        return SQLiteBackend(
            settings.resolve_path(settings.sqlite.path, "proverbs.db"),
            timeout=settings.sqlite.timeout,
        )
    if settings.backend == "mongodb":
        mongo = settings.mongodb
        return MongoBackend(
            uri=mongo.uri,
            database=mongo.database,
            collection=mongo.collection,
            transactions=None if mongo.transactions == "auto" else mongo.transactions,
            timeout_ms=mongo.timeout_ms,
        )
    if settings.backend == "lmdb":
        return LMDBBackend(
            settings.resolve_path(settings.lmdb.path, "proverbs.lmdb"),
            map_size=settings.lmdb.map_size,
        )
    raise ConfigError(f"Unknown backend: {settings.backend}")


def open_backend(settings: StoreSettings) -> BaseBackend:
    """Construct and open the configured backend."""
    backend = create_backend(settings)
    backend.open()
    return backend


__all__ = [
    "BACKENDS",
    "BaseBackend",
    "BulkLoadScope",
    "LMDBBackend",
    "MongoBackend",
    "SQLiteBackend",
    "create_backend",
    "open_backend",
]
