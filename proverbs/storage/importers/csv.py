"""CSV source format for proverb corpora.

The file has a header row naming the columns ``tags`` and ``proverb`` (in
either order) followed by one record per line. Empty lines are skipped; a
line with empty fields is still a record. The ``tags`` field holds zero or
more tags joined by ``|``::

    tags,proverb
    cgo,Cgo is not Go.
    error|values,Errors are values.
"""

import csv
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from proverbs.core.exceptions import ImportFailedError
from proverbs.core.models import TAG_DELIMITER, SourceRecord

logger = logging.getLogger(__name__)


class CsvImporter:
    """Read candidate records from a delimited source file."""

    TAGS_COLUMN = "tags"
    TEXT_COLUMN = "proverb"

    def __init__(self, delimiter: str = ","):
        if delimiter == TAG_DELIMITER:
            raise ValueError(
                f"Field delimiter {delimiter!r} collides with the tag delimiter"
            )
        self.delimiter = delimiter

    def read_file(self, path: Path | str) -> Iterator[SourceRecord]:
        """Yield records from a file in source order.

        Raises:
            ImportFailedError: If the file cannot be read or a row is malformed.
                Records before the failing row have already been yielded.
        """
        path = Path(path)
        try:
            with open(path, newline="", encoding="utf-8-sig") as f:
                yield from self.read(f)
        except OSError as e:
            raise ImportFailedError(f"Failed to read {path}: {e}") from e
        except UnicodeDecodeError as e:
            raise ImportFailedError(f"{path} is not valid UTF-8: {e}") from e

    def read(self, lines: Iterable[str]) -> Iterator[SourceRecord]:
        """Yield records from an iterable of CSV lines."""
        reader = csv.reader(lines, delimiter=self.delimiter)
        try:
            header = next(reader, None)
            if header is None:
                raise ImportFailedError("missing header row", line=1)
            tags_index, text_index = self._columns(header)

            for row in reader:
                if not row:
                    continue
                if len(row) != 2:
                    raise ImportFailedError(
                        f"expected 2 fields, found {len(row)}", line=reader.line_num
                    )
                yield SourceRecord(
                    line=reader.line_num,
                    text=row[text_index],
                    raw_tags=row[tags_index],
                )
        except csv.Error as e:
            raise ImportFailedError(f"malformed CSV: {e}", line=reader.line_num) from e

    def load(self, path: Path | str) -> list[SourceRecord]:
        """Read every record of a file."""
        records = list(self.read_file(path))
        logger.debug(f"Read {len(records)} records from {path}")
        return records

    def _columns(self, header: list[str]) -> tuple[int, int]:
        columns = [name.strip().lower() for name in header]
        expected = {self.TAGS_COLUMN, self.TEXT_COLUMN}
        if len(columns) != 2 or set(columns) != expected:
            raise ImportFailedError(
                f"header must name the columns {self.TAGS_COLUMN!r} and "
                f"{self.TEXT_COLUMN!r}, found {header!r}",
                line=1,
            )
        return columns.index(self.TAGS_COLUMN), columns.index(self.TEXT_COLUMN)
