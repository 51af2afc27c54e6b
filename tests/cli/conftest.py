"""Pytest configuration and fixtures for CLI tests."""

import pytest
from click.testing import CliRunner

from proverbs.cli import cli


@pytest.fixture
def runner():
    """Create a Click CLI runner."""
    return CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so no project config file is found."""
    path = tmp_path / "work"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def data_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture
def invoke(runner, workdir, data_dir):
    """Invoke the CLI against a fresh store.

    The backend defaults to SQLite; pass ``backend=None`` to leave the
    choice to configuration.
    """

    def _invoke(*args, backend="sqlite"):
        options = ["--no-color", "--data-dir", str(data_dir)]
        if backend:
            options += ["--backend", backend]
        return runner.invoke(cli, [*options, *args])

    return _invoke
