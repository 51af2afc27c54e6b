"""Tests for CLI configuration loading."""

from pathlib import Path

import pytest

from proverbs.cli.config import (
    Config,
    build_settings,
    get_config_paths,
    get_data_dir,
    load_config,
)
from proverbs.core.exceptions import ConfigError


class TestConfigFiles:
    """Test reading configuration files."""

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("backend: lmdb\nlmdb:\n  map_size: 1048576\n")

        assert Config.from_file(path) == {"backend": "lmdb", "lmdb": {"map_size": 1048576}}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        assert Config.from_file(path) == {}

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- sqlite\n- lmdb\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            Config.from_file(path)

    def test_unreadable(self, tmp_path):
        with pytest.raises(ConfigError, match="Error reading"):
            Config.from_file(tmp_path / "missing.yaml")

    def test_config_paths_follow_xdg(self, tmp_path):
        paths = get_config_paths()

        assert paths[0] == tmp_path / "config" / "proverbs" / "config.yaml"
        assert Path("proverbs.yaml") in paths

    def test_merge_is_deep(self):
        merged = Config.merge_configs(
            {"backend": "sqlite", "mongodb": {"uri": "a", "database": "x"}},
            {"mongodb": {"uri": "b"}},
        )

        assert merged == {"backend": "sqlite", "mongodb": {"uri": "b", "database": "x"}}


class TestLoadConfig:
    """Test configuration precedence."""

    def test_no_files(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert load_config() == {}

    def test_user_then_project_then_explicit(self, tmp_path, monkeypatch):
        user = tmp_path / "config" / "proverbs" / "config.yaml"
        user.parent.mkdir(parents=True)
        user.write_text("backend: lmdb\nsqlite:\n  timeout: 5\n")
        project = tmp_path / "project"
        project.mkdir()
        (project / "proverbs.yaml").write_text("backend: mongodb\n")
        explicit = tmp_path / "explicit.yaml"
        explicit.write_text("mongodb:\n  database: quotes\n")
        monkeypatch.chdir(project)

        config = load_config(explicit)

        assert config["backend"] == "mongodb"
        assert config["sqlite"] == {"timeout": 5}
        assert config["mongodb"] == {"database": "quotes"}

    def test_environment_wins(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "proverbs.yaml").write_text("backend: lmdb\n")
        monkeypatch.setenv("PROVERBS_BACKEND", "sqlite")
        monkeypatch.setenv("PROVERBS_MONGODB_URI", "mongodb://db:27017")

        config = load_config()

        assert config["backend"] == "sqlite"
        assert config["mongodb"] == {"uri": "mongodb://db:27017"}


class TestBuildSettings:
    """Test turning configuration into backend settings."""

    def test_default_data_dir(self, tmp_path):
        settings = build_settings({})

        assert settings.backend == "sqlite"
        assert Path(settings.data_dir) == tmp_path / "data" / "proverbs"
        assert get_data_dir() == tmp_path / "data" / "proverbs"

    def test_data_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROVERBS_DATA_DIR", str(tmp_path / "store"))

        assert get_data_dir() == tmp_path / "store"

    def test_configured_data_dir_kept(self):
        settings = build_settings({"data_dir": "/srv/proverbs"})

        assert settings.data_dir == "/srv/proverbs"

    def test_command_line_wins(self, tmp_path):
        settings = build_settings(
            {"backend": "mongodb", "data_dir": "/srv/proverbs"},
            backend="lmdb",
            data_dir=tmp_path,
        )

        assert settings.backend == "lmdb"
        assert settings.data_dir == str(tmp_path)

    def test_invalid_backend(self):
        with pytest.raises(ConfigError):
            build_settings({"backend": "redis"})
