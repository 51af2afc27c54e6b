"""Atomic import of proverb corpora into a storage backend."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

import msgspec

from ..core.exceptions import ImportFailedError, ProverbsError, WriteError
from ..core.models import Proverb, SourceRecord
from ..storage.backends.base import BaseBackend, BulkLoadScope
from ..storage.importers import CsvImporter

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of an import operation."""

    source: str | None = None
    total: int = 0
    imported: int = 0
    identities: list[str] = field(default_factory=list)
    dry_run: bool = False
    duration_ms: int | None = None

    @property
    def success(self) -> bool:
        """Check if every record was stored (or validated, for a dry run)."""
        return self.dry_run or self.imported == self.total

    def get_summary(self) -> str:
        """Get summary of import results."""
        source = f" from {self.source}" if self.source else ""
        if self.dry_run:
            return f"Validated {self.total} proverbs{source} (dry run, nothing stored)"
        return f"Imported {self.imported} proverbs{source}"


class ProverbImporter:
    """Loads candidate records into a backend as one atomic unit.

    Either every record becomes a stored proverb or the store is left
    exactly as it was. Importing the same records twice stores them twice.
    """

    def __init__(
        self, backend: BaseBackend | None, reader: CsvImporter | None = None
    ):
        """Initialize importer.

        Args:
            backend: Opened backend to load into; may be None for dry runs
            reader: Source reader (default: CsvImporter)
        """
        self.backend = backend
        self.reader = reader or CsvImporter()

    def import_file(self, path: Path | str, dry_run: bool = False) -> ImportResult:
        """Import every record of a source file."""
        records = self.reader.read_file(path)
        if dry_run:
            logger.info(f"Validating {path}")
            return self.validate_records(records, source=str(path))
        logger.info(f"Importing {path}")
        return self.import_records(records, source=str(path))

    def import_records(
        self, records: Iterable[SourceRecord], source: str | None = None
    ) -> ImportResult:
        """Insert records inside one bulk-load scope.

        Raises:
            ImportFailedError: On the first malformed record or rejected
                write. The scope is aborted before the error is raised.
            BackendConnectionError: If the backend connection is lost; the
                backend aborts the scope itself.
        """
        if self.backend is None:
            raise ValueError("No backend to import into")
        result = ImportResult(source=source)
        started = time.monotonic()
        scope = self.backend.begin_bulk_load()
        line: int | None = None

        try:
            for record in records:
                line = record.line
                result.total += 1
                stored = self.backend.insert_proverb(scope, self._parse(record))
                result.identities.append(stored.id)
                logger.debug(f"Staged line {line} as {stored.id}")
        except (ImportFailedError, WriteError) as e:
            self._abort(scope, e)
            if isinstance(e, ImportFailedError):
                raise
            raise ImportFailedError(str(e), line=line) from e
        except BaseException as e:
            self._abort(scope, e)
            raise

        try:
            self.backend.commit_bulk_load(scope)
        except WriteError as e:
            logger.error(f"Import aborted: {e}")
            raise ImportFailedError(str(e)) from e

        result.imported = len(result.identities)
        result.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Committed {result.imported} proverbs into {self.backend.name} "
            f"in {result.duration_ms} ms"
        )
        return result

    def validate_records(
        self, records: Iterable[SourceRecord], source: str | None = None
    ) -> ImportResult:
        """Parse every record without touching the backend."""
        result = ImportResult(source=source, dry_run=True)
        for record in records:
            self._parse(record)
            result.total += 1
        logger.info(f"[DRY RUN] {result.total} proverbs would be imported")
        return result

    def _parse(self, record: SourceRecord) -> Proverb:
        try:
            return record.to_proverb()
        except (ValueError, msgspec.ValidationError) as e:
            raise ImportFailedError(str(e), line=record.line) from e

    def _abort(self, scope: BulkLoadScope, error: BaseException) -> None:
        logger.error(f"Import aborted, rolling back: {error}")
        if not scope.active:
            return
        try:
            self.backend.abort_bulk_load(scope)
        except ProverbsError as e:
            # The original error is re-raised by the caller
            logger.error(f"Rollback failed: {e}")
