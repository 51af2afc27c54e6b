"""Tests for backend settings and backend construction."""

from pathlib import Path

import pytest

from proverbs.core.exceptions import ConfigError
from proverbs.storage.backends import (
    LMDBBackend,
    MongoBackend,
    SQLiteBackend,
    create_backend,
    open_backend,
)
from proverbs.storage.config import StoreSettings


class TestStoreSettings:
    """Test validation of raw configuration."""

    def test_defaults(self):
        settings = StoreSettings.from_mapping({})

        assert settings.backend == "sqlite"
        assert settings.mongodb.transactions == "auto"
        assert settings.lmdb.map_size == 64 * 1024 * 1024

    def test_nested_sections(self):
        settings = StoreSettings.from_mapping(
            {
                "backend": "mongodb",
                "mongodb": {"uri": "mongodb://db:27017", "transactions": True},
            }
        )

        assert settings.backend == "mongodb"
        assert settings.mongodb.uri == "mongodb://db:27017"
        assert settings.mongodb.transactions is True
        assert settings.mongodb.database == "proverbs"

    def test_unrelated_top_level_keys_ignored(self):
        settings = StoreSettings.from_mapping({"theme": "dark", "backend": "lmdb"})

        assert settings.backend == "lmdb"

    def test_unknown_backend(self):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            StoreSettings.from_mapping({"backend": "postgres"})

    def test_unknown_section_key(self):
        with pytest.raises(ConfigError):
            StoreSettings.from_mapping({"sqlite": {"pth": "x.db"}})

    def test_wrong_type(self):
        with pytest.raises(ConfigError):
            StoreSettings.from_mapping({"lmdb": {"map_size": "big"}})

    def test_resolve_path_prefers_configured(self, tmp_path):
        settings = StoreSettings(data_dir=str(tmp_path))

        assert settings.resolve_path("/srv/p.db", "proverbs.db") == Path("/srv/p.db")
        assert settings.resolve_path(None, "proverbs.db") == tmp_path / "proverbs.db"

    def test_resolve_path_without_data_dir(self):
        with pytest.raises(ConfigError, match="No path configured"):
            StoreSettings().resolve_path(None, "proverbs.db")


class TestCreateBackend:
    """Test selecting the backend variant from settings."""

    def test_sqlite(self, tmp_path):
        backend = create_backend(StoreSettings(data_dir=str(tmp_path)))

        assert isinstance(backend, SQLiteBackend)
        assert backend.db_path == tmp_path / "proverbs.db"
        assert not backend.is_open

    def test_lmdb(self, tmp_path):
        settings = StoreSettings.from_mapping(
            {"backend": "lmdb", "data_dir": str(tmp_path), "lmdb": {"map_size": 1024}}
        )

        backend = create_backend(settings)

        assert isinstance(backend, LMDBBackend)
        assert backend.path == tmp_path / "proverbs.lmdb"
        assert backend.map_size == 1024

    @pytest.mark.parametrize(
        "transactions, expected", [("auto", None), (True, True), (False, False)]
    )
    def test_mongodb(self, transactions, expected):
        settings = StoreSettings.from_mapping(
            {"backend": "mongodb", "mongodb": {"transactions": transactions}}
        )

        backend = create_backend(settings)

        assert isinstance(backend, MongoBackend)
        assert backend.transactions is expected

    def test_open_backend(self, tmp_path):
        backend = open_backend(StoreSettings(data_dir=str(tmp_path)))
        try:
            assert backend.is_open
            assert (tmp_path / "proverbs.db").exists()
        finally:
            backend.close()
