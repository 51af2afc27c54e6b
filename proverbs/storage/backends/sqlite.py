"""SQLite storage backend (relational variant)."""

import sqlite3
import threading
from pathlib import Path

import msgspec

from proverbs.core.exceptions import BackendConnectionError, QueryError, WriteError
from proverbs.core.models import Proverb

from .base import BaseBackend, BulkLoadScope

SCHEMA = """
    CREATE TABLE IF NOT EXISTS proverbs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL CHECK (length(trim(text)) > 0),
        tags TEXT NOT NULL DEFAULT '[]',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE TABLE IF NOT EXISTS proverb_tags (
        proverb_id INTEGER NOT NULL REFERENCES proverbs(id),
        tag TEXT NOT NULL CHECK (length(tag) > 0),
        PRIMARY KEY (proverb_id, tag)
    );

    CREATE INDEX IF NOT EXISTS idx_proverb_tags_tag ON proverb_tags(tag);
"""

_SELECT = "SELECT p.id, p.text, p.tags FROM proverbs p"


def _lower(value: str | None) -> str | None:
    return value.lower() if value is not None else None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteBackend(BaseBackend):
    """SQLite-based storage.

    Tags are kept twice: as a JSON array on the proverb row, which preserves
    their order for display, and in the ``proverb_tags`` join table, which
    serves exact tag lookups through an index.
    """

    name = "sqlite"

    def __init__(self, db_path: Path | str, timeout: float = 30.0):
        super().__init__()
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.timeout = timeout
        self._lock = threading.RLock()
        self.conn: sqlite3.Connection | None = None

    @property
    def location(self) -> str:
        return str(self.db_path)

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise BackendConnectionError(self.name, "database connection not open")
        return self.conn

    def _open(self) -> None:
        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode; bulk loads issue BEGIN/COMMIT themselves
            self.conn = sqlite3.connect(
                str(self.db_path),
                timeout=self.timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            self.conn.row_factory = sqlite3.Row
            self.conn.create_function("py_lower", 1, _lower, deterministic=True)
            self.conn.execute("PRAGMA journal_mode = WAL")
            self.conn.execute("PRAGMA foreign_keys = ON")
            self.conn.executescript(SCHEMA)
        except (OSError, sqlite3.Error) as e:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
            raise BackendConnectionError(
                self.name, f"cannot open database {self.db_path}: {e}"
            ) from e

    def _close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _begin(self) -> None:
        with self._lock:
            try:
                self.connection.execute("BEGIN IMMEDIATE")
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                raise WriteError(self.name, f"cannot start transaction: {e}") from e

    def _insert(self, scope: BulkLoadScope, proverb: Proverb) -> str:
        with self._lock:
            try:
                cursor = self.connection.execute(
                    "INSERT INTO proverbs (text, tags) VALUES (?, ?)",
                    (proverb.text, msgspec.json.encode(proverb.tags).decode()),
                )
                proverb_id = cursor.lastrowid
                self.connection.executemany(
                    "INSERT INTO proverb_tags (proverb_id, tag) VALUES (?, ?)",
                    [(proverb_id, tag) for tag in proverb.tags],
                )
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                raise WriteError(self.name, str(e)) from e
            return str(proverb_id)

    def _commit(self, scope: BulkLoadScope) -> None:
        with self._lock:
            try:
                self.connection.execute("COMMIT")
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                if self.connection.in_transaction:
                    self.connection.execute("ROLLBACK")
                raise WriteError(self.name, f"commit failed: {e}") from e

    def _abort(self, scope: BulkLoadScope) -> None:
        with self._lock:
            try:
                if self.conn is not None and self.conn.in_transaction:
                    self.conn.execute("ROLLBACK")
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                raise WriteError(self.name, f"rollback failed: {e}") from e

    def _query(self, sql: str, params: tuple = ()) -> list[Proverb]:
        with self._lock:
            try:
                rows = self.connection.execute(sql, params).fetchall()
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                raise QueryError(self.name, str(e)) from e
        return [self._to_proverb(row) for row in rows]

    def _to_proverb(self, row: sqlite3.Row) -> Proverb:
        return Proverb(
            id=str(row["id"]),
            text=row["text"],
            tags=msgspec.json.decode(row["tags"], type=tuple[str, ...]),
        )

    def _list_all(self) -> list[Proverb]:
        return self._query(f"{_SELECT} ORDER BY p.id")

    def _find_contains(self, substring: str) -> list[Proverb]:
        pattern = f"%{_escape_like(substring.lower())}%"
        return self._query(
            f"{_SELECT} WHERE py_lower(p.text) LIKE ? ESCAPE '\\' ORDER BY p.id",
            (pattern,),
        )

    def _find_by_tag(self, tag: str) -> list[Proverb]:
        return self._query(
            f"{_SELECT} JOIN proverb_tags t ON t.proverb_id = p.id "
            "WHERE t.tag = ? ORDER BY p.id",
            (tag,),
        )

    def count(self) -> int:
        """Count stored proverbs without loading them."""
        self._require_open()
        with self._lock:
            try:
                row = self.connection.execute(
                    "SELECT COUNT(*) AS count FROM proverbs"
                ).fetchone()
            except sqlite3.ProgrammingError as e:
                raise BackendConnectionError(self.name, str(e)) from e
            except sqlite3.Error as e:
                raise QueryError(self.name, str(e)) from e
        return row["count"]
