"""Proverb storage layer.

Provides one storage contract with three backend implementations:

- **Backends**: SQLite (relational), MongoDB (document), LMDB (key-value)
- **Atomic bulk loads**: every import is all-or-nothing on every backend
- **Import formats**: delimited source files parsed into candidate records
- **Settings**: typed backend configuration validated with msgspec
"""

from proverbs.storage.backends import (
    BACKENDS,
    BaseBackend,
    BulkLoadScope,
    LMDBBackend,
    MongoBackend,
    SQLiteBackend,
    create_backend,
    open_backend,
)
from proverbs.storage.config import (
    LMDBSettings,
    MongoSettings,
    SQLiteSettings,
    StoreSettings,
)
from proverbs.storage.importers import CsvImporter

__all__ = [
    # Backends
    "BACKENDS",
    "BaseBackend",
    "BulkLoadScope",
    "LMDBBackend",
    "MongoBackend",
    "SQLiteBackend",
    "create_backend",
    "open_backend",
    # Settings
    "StoreSettings",
    "SQLiteSettings",
    "MongoSettings",
    "LMDBSettings",
    # Import formats
    "CsvImporter",
]
