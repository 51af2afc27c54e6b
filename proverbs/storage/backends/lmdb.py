"""LMDB storage backend (embedded ordered key-value variant).

LMDB has no query language, so the backend maintains its own secondary
index. One environment holds three named databases:

- ``proverbs``: 8-byte big-endian sequence id -> JSON ``{text, tags}``
- ``tags``: tag -> id, opened with ``dupsort`` so each tag maps to a
  sorted set of ids
- ``meta``: bookkeeping, currently the next sequence id

A bulk load is one LMDB write transaction. Each insert runs in a nested
transaction so the primary record and its index entries are written
together or not at all.
"""

from pathlib import Path

import lmdb
import msgspec

from proverbs.core.exceptions import BackendConnectionError, QueryError, WriteError
from proverbs.core.models import Proverb

from .base import BaseBackend, BulkLoadScope

NEXT_ID = b"next_id"


class StoredProverb(msgspec.Struct, frozen=True):
    """Value layout of the primary database."""

    text: str
    tags: tuple[str, ...] = ()


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(StoredProverb)


def _key(identity: int) -> bytes:
    return identity.to_bytes(8, "big")


class LMDBBackend(BaseBackend):
    """LMDB-based storage with a tag -> ids secondary index."""

    name = "lmdb"

    def __init__(self, path: Path | str, map_size: int = 64 * 1024 * 1024):
        super().__init__()
        self.path = Path(path)
        self.map_size = map_size
        self.env: lmdb.Environment | None = None
        self._proverbs = None
        self._tags = None
        self._meta = None

    @property
    def location(self) -> str:
        return str(self.path)

    def _open(self) -> None:
        try:
            self.path.mkdir(parents=True, exist_ok=True)
            self.env = lmdb.open(
                str(self.path), map_size=self.map_size, max_dbs=3, subdir=True
            )
            self._proverbs = self.env.open_db(b"proverbs")
            self._tags = self.env.open_db(b"tags", dupsort=True)
            self._meta = self.env.open_db(b"meta")
        except (OSError, lmdb.Error) as e:
            self._close()
            raise BackendConnectionError(
                self.name, f"cannot open environment {self.path}: {e}"
            ) from e

    def _close(self) -> None:
        if self.env is not None:
            self.env.close()
            self.env = None

    def _begin(self) -> lmdb.Transaction:
        try:
            return self.env.begin(write=True)
        except lmdb.Error as e:
            raise WriteError(self.name, f"cannot start transaction: {e}") from e

    def _insert(self, scope: BulkLoadScope, proverb: Proverb) -> str:
        try:
            with self.env.begin(write=True, parent=scope.state) as txn:
                raw = txn.get(NEXT_ID, db=self._meta)
                identity = int.from_bytes(raw, "big") if raw else 1
                key = _key(identity)
                value = _encoder.encode(StoredProverb(proverb.text, proverb.tags))
                if not txn.put(key, value, overwrite=False, db=self._proverbs):
                    raise WriteError(self.name, f"identity {identity} already in use")
                for tag in proverb.tags:
                    txn.put(tag.encode("utf-8"), key, db=self._tags)
                txn.put(NEXT_ID, _key(identity + 1), db=self._meta)
        except lmdb.Error as e:
            raise WriteError(self.name, str(e)) from e
        return str(identity)

    def _commit(self, scope: BulkLoadScope) -> None:
        try:
            scope.state.commit()
        except lmdb.Error as e:
            raise WriteError(self.name, f"commit failed: {e}") from e

    def _abort(self, scope: BulkLoadScope) -> None:
        scope.state.abort()

    def _to_proverb(self, key: bytes, value: bytes) -> Proverb:
        stored = _decoder.decode(value)
        return Proverb(
            id=str(int.from_bytes(key, "big")), text=stored.text, tags=stored.tags
        )

    def _list_all(self) -> list[Proverb]:
        try:
            with self.env.begin(db=self._proverbs) as txn:
                return [self._to_proverb(key, value) for key, value in txn.cursor()]
        except lmdb.Error as e:
            raise QueryError(self.name, str(e)) from e

    def _find_contains(self, substring: str) -> list[Proverb]:
        # Full scan of the primary database
        needle = substring.lower()
        return [p for p in self._list_all() if needle in p.text.lower()]

    def _find_by_tag(self, tag: str) -> list[Proverb]:
        try:
            with self.env.begin() as txn:
                cursor = txn.cursor(db=self._tags)
                if not cursor.set_key(tag.encode("utf-8")):
                    return []
                keys = list(cursor.iternext_dup())
                results = []
                for key in keys:
                    value = txn.get(key, db=self._proverbs)
                    if value is None:
                        raise QueryError(self.name, f"index entry for {tag!r} is dangling")
                    results.append(self._to_proverb(key, value))
                return results
        except lmdb.Error as e:
            raise QueryError(self.name, str(e)) from e

    def count(self) -> int:
        """Count stored proverbs from the database statistics."""
        self._require_open()
        try:
            with self.env.begin() as txn:
                return txn.stat(self._proverbs)["entries"]
        except lmdb.Error as e:
            raise QueryError(self.name, str(e)) from e
