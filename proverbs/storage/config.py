"""Typed backend settings.

Raw configuration (a mapping loaded from YAML and the environment) is
validated into these structs before any backend is constructed.
"""

from pathlib import Path
from typing import Any, Literal

import msgspec

from proverbs.core.exceptions import ConfigError

BACKEND_NAMES = ("sqlite", "mongodb", "lmdb")


class SQLiteSettings(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Relational backend settings."""

    path: str | None = None
    timeout: float = 30.0


class MongoSettings(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Document backend settings."""

    uri: str = "mongodb://localhost:27017"
    database: str = "proverbs"
    collection: str = "proverbs"
    transactions: bool | Literal["auto"] = "auto"
    timeout_ms: int = 5000


class LMDBSettings(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Embedded key-value backend settings."""

    path: str | None = None
    map_size: int = 64 * 1024 * 1024


class StoreSettings(msgspec.Struct, frozen=True, forbid_unknown_fields=True):
    """Backend selection plus per-backend settings."""

    backend: Literal["sqlite", "mongodb", "lmdb"] = "sqlite"
    data_dir: str | None = None
    sqlite: SQLiteSettings = msgspec.field(default_factory=SQLiteSettings)
    mongodb: MongoSettings = msgspec.field(default_factory=MongoSettings)
    lmdb: LMDBSettings = msgspec.field(default_factory=LMDBSettings)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "StoreSettings":
        """Validate a raw configuration mapping.

        Keys unrelated to storage (such as ``theme``) are ignored at the top
        level; unknown keys inside a backend section are errors.

        Raises:
            ConfigError: If a value has the wrong type or an unknown backend
                is selected.
        """
        data = dict(data or {})
        known = set(cls.__struct_fields__)
        storage = {key: value for key, value in data.items() if key in known}
        try:
            return msgspec.convert(storage, cls)
        except msgspec.ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def resolve_path(self, configured: str | None, default_name: str) -> Path:
        """Resolve a backend path, falling back to the data directory."""
        if configured:
            return Path(configured).expanduser()
        if not self.data_dir:
            raise ConfigError(f"No path configured for {self.backend} backend")
        return Path(self.data_dir).expanduser() / default_name
