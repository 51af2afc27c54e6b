"""Pytest configuration and shared fixtures.

The ``backend`` fixture is parametrized over all three storage variants so
every test that uses it runs against SQLite, MongoDB (mongomock) and LMDB.
"""

import os
import uuid
from pathlib import Path

import mongomock
import pytest

from proverbs.cli.config import ENV_OVERRIDES
from proverbs.core.models import Proverb, SourceRecord
from proverbs.storage.backends import LMDBBackend, MongoBackend, SQLiteBackend

BACKEND_NAMES = ["sqlite", "mongodb", "lmdb"]


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Isolate environment variables and config discovery for each test.

    This prevents a developer's own configuration or PROVERBS_* variables
    from leaking into tests.
    """
    original_env = os.environ.copy()

    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    yield

    os.environ.clear()
    os.environ.update(original_env)


def make_backend(name: str, root: Path, mongo_client=None):
    """Create an unopened backend of the given variant under ``root``."""
    if name == "sqlite":
        return SQLiteBackend(root / "proverbs.db")
    if name == "mongodb":
        return MongoBackend(
            database=f"test_{uuid.uuid4().hex}",
            transactions=False,
            client=mongo_client or mongomock.MongoClient(),
        )
    if name == "lmdb":
        return LMDBBackend(root / "proverbs.lmdb", map_size=16 * 1024 * 1024)
    raise ValueError(f"Unknown backend: {name}")


@pytest.fixture(params=BACKEND_NAMES)
def backend(request, tmp_path):
    """Opened backend of each variant."""
    backend = make_backend(request.param, tmp_path)
    backend.open()
    yield backend
    backend.close()


@pytest.fixture
def go_proverbs():
    """The two-record example corpus."""
    return [
        Proverb(text="Cgo is not Go.", tags=("cgo",)),
        Proverb(text="Errors are values", tags=("error",)),
    ]


@pytest.fixture
def sample_proverbs():
    """A larger corpus with shared, multiple and missing tags."""
    return [
        Proverb(
            text="Don't communicate by sharing memory, share memory by communicating.",
            tags=("concurrency", "memory"),
        ),
        Proverb(text="Concurrency is not parallelism.", tags=("concurrency",)),
        Proverb(
            text="Channels orchestrate; mutexes serialize.",
            tags=("concurrency", "channels"),
        ),
        Proverb(
            text="The bigger the interface, the weaker the abstraction.",
            tags=("interfaces",),
        ),
        Proverb(text="Make the zero value useful.", tags=()),
        Proverb(text="Errors are values.", tags=("error", "Error")),
        Proverb(text="Don't just check errors, handle them gracefully.", tags=("error",)),
        Proverb(text="Cgo is not Go.", tags=("cgo",)),
    ]


@pytest.fixture
def go_records():
    """Source rows of the two-record example corpus."""
    return [
        SourceRecord(line=2, text="Cgo is not Go.", raw_tags="cgo"),
        SourceRecord(line=3, text="Errors are values", raw_tags="error"),
    ]


@pytest.fixture
def go_csv(tmp_path):
    """The two-record example corpus as a CSV file."""
    path = tmp_path / "proverbs.csv"
    path.write_text("tags,proverb\ncgo,Cgo is not Go.\nerror,Errors are values\n")
    return path


@pytest.fixture
def load():
    """Bulk-load proverbs into a backend and return them with identities."""

    def _load(backend, proverbs):
        with backend.bulk_load() as scope:
            return [backend.insert_proverb(scope, proverb) for proverb in proverbs]

    return _load


@pytest.fixture
def contents():
    """Identity-free set of proverbs for cross-backend comparison."""

    def _contents(proverbs):
        return {proverb.content for proverb in proverbs}

    return _contents
