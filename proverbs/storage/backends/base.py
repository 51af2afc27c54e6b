"""Base storage backend interface.

All backends share one capability set: open a handle, bulk-load proverbs
inside an atomic scope, and answer list, substring and tag queries. The
base class owns the scope bookkeeping; variants implement the ``_``-prefixed
hooks.
"""

import itertools
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, ClassVar

from proverbs.core.exceptions import BackendConnectionError, StateError, WriteError
from proverbs.core.models import Proverb

logger = logging.getLogger(__name__)

_scope_ids = itertools.count(1)


class BulkLoadScope:
    """Handle for one open bulk load.

    Backends keep their native transaction state in ``state``.
    """

    def __init__(self, backend: "BaseBackend", state: Any = None):
        self.id = next(_scope_ids)
        self.backend = backend
        self.state = state
        self.inserted: list[str] = []
        self.active = True

    def __repr__(self) -> str:
        status = "active" if self.active else "finished"
        return (
            f"<BulkLoadScope {self.id} on {self.backend.name} "
            f"({status}, {len(self.inserted)} inserted)>"
        )


class BaseBackend(ABC):
    """Abstract base class for storage backends."""

    name: ClassVar[str] = "base"

    def __init__(self):
        self._scope: BulkLoadScope | None = None
        self._opened = False

    # Connection lifecycle

    def open(self) -> None:
        """Establish the backend handle.

        Raises:
            BackendConnectionError: If the backend is unreachable or misconfigured.
        """
        if self._opened:
            return
        self._open()
        self._opened = True
        logger.debug(f"Opened {self.name} backend at {self.location}")

    def close(self) -> None:
        """Abort any in-flight bulk load and release the handle."""
        if self._scope is not None:
            logger.warning(f"Closing {self.name} backend with an open bulk load")
            self._discard(self._scope)
        if self._opened:
            self._opened = False
            self._close()
            logger.debug(f"Closed {self.name} backend")

    @property
    def is_open(self) -> bool:
        """Check whether the handle is usable."""
        return self._opened

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the data lives."""
        pass

    def __enter__(self) -> "BaseBackend":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Bulk load

    def begin_bulk_load(self) -> BulkLoadScope:
        """Open an atomic scope for one or more inserts.

        Raises:
            StateError: If another scope is still open.
        """
        self._require_open()
        if self._scope is not None:
            raise StateError(f"{self.name}: a bulk load is already in progress")
        scope = BulkLoadScope(self)
        scope.state = self._guard(self._begin)
        self._scope = scope
        logger.debug(f"Began bulk load {scope.id} on {self.name}")
        return scope

    def insert_proverb(self, scope: BulkLoadScope, proverb: Proverb) -> Proverb:
        """Persist one proverb inside the scope and assign its identity.

        Returns:
            The proverb carrying its new identity.

        Raises:
            StateError: If the scope is not the active one.
            WriteError: If the backend rejects the record.
        """
        self._require_scope(scope)
        if proverb.id is not None:
            raise WriteError(self.name, f"proverb already has identity {proverb.id}")
        identity = self._guard(self._insert, scope, proverb)
        scope.inserted.append(identity)
        return proverb.with_id(identity)

    def commit_bulk_load(self, scope: BulkLoadScope) -> None:
        """Make every insert of the scope durable and visible at once.

        Raises:
            WriteError: If the backend rejects the commit. Nothing of the
                scope is persisted in that case.
        """
        self._require_scope(scope)
        try:
            self._guard(self._commit, scope)
        finally:
            if self._scope is scope:
                scope.active = False
                self._scope = None
        logger.debug(
            f"Committed bulk load {scope.id} on {self.name} "
            f"({len(scope.inserted)} records)"
        )

    def abort_bulk_load(self, scope: BulkLoadScope) -> None:
        """Discard every insert of the scope."""
        self._require_scope(scope)
        try:
            self._abort(scope)
        finally:
            scope.active = False
            self._scope = None
        logger.debug(f"Aborted bulk load {scope.id} on {self.name}")

    @contextmanager
    def bulk_load(self) -> Iterator[BulkLoadScope]:
        """Bulk load context manager: commit on success, abort on error."""
        scope = self.begin_bulk_load()
        try:
            yield scope
        except BaseException:
            if scope.active:
                self._discard(scope)
            raise
        self.commit_bulk_load(scope)

    # Queries

    def list_all(self) -> list[Proverb]:
        """Return every stored proverb in backend-natural order."""
        self._require_open()
        return self._guard(self._list_all)

    def find_contains(self, substring: str) -> list[Proverb]:
        """Return proverbs whose text contains ``substring``, ignoring case."""
        self._require_open()
        if not substring:
            return self.list_all()
        return self._guard(self._find_contains, substring)

    def find_by_tag(self, tag: str) -> list[Proverb]:
        """Return proverbs tagged exactly ``tag``, compared case-sensitively."""
        self._require_open()
        if not tag:
            return []
        return self._guard(self._find_by_tag, tag)

    def count(self) -> int:
        """Count stored proverbs."""
        return len(self.list_all())

    # Hooks

    @abstractmethod
    def _open(self) -> None:
        pass

    @abstractmethod
    def _close(self) -> None:
        pass

    @abstractmethod
    def _begin(self) -> Any:
        """Start a native transaction and return its state."""
        pass

    @abstractmethod
    def _insert(self, scope: BulkLoadScope, proverb: Proverb) -> str:
        """Insert inside the scope and return the new identity."""
        pass

    @abstractmethod
    def _commit(self, scope: BulkLoadScope) -> None:
        """Publish the scope; on failure the store must be left unchanged."""
        pass

    @abstractmethod
    def _abort(self, scope: BulkLoadScope) -> None:
        pass

    @abstractmethod
    def _list_all(self) -> list[Proverb]:
        pass

    @abstractmethod
    def _find_contains(self, substring: str) -> list[Proverb]:
        pass

    @abstractmethod
    def _find_by_tag(self, tag: str) -> list[Proverb]:
        pass

    # Helpers

    def _require_open(self) -> None:
        if not self._opened:
            raise BackendConnectionError(self.name, "backend is not open")

    def _require_scope(self, scope: BulkLoadScope) -> None:
        self._require_open()
        if scope.backend is not self:
            raise StateError(f"{self.name}: scope belongs to another backend")
        if not scope.active or self._scope is not scope:
            raise StateError(f"{self.name}: bulk load {scope.id} is not active")

    def _guard(self, func, *args):
        """Run a hook; on connection loss abort the open scope and re-raise."""
        try:
            return func(*args)
        except BackendConnectionError:
            if self._scope is not None:
                self._discard(self._scope)
            raise

    def _discard(self, scope: BulkLoadScope) -> None:
        """Abort a scope after a failure, keeping the original error."""
        try:
            self._abort(scope)
        except Exception as e:
            logger.warning(f"Abort of bulk load {scope.id} on {self.name} failed: {e}")
        finally:
            scope.active = False
            self._scope = None
