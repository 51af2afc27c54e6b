"""Core domain models and error taxonomy for the proverb store."""

from proverbs.core.exceptions import (
    BackendConnectionError,
    ConfigError,
    ImportFailedError,
    ProverbsError,
    QueryError,
    StateError,
    WriteError,
)
from proverbs.core.models import (
    MAX_TAG_BYTES,
    TAG_DELIMITER,
    Proverb,
    SourceRecord,
    parse_tags,
)

__all__ = [
    # Models
    "Proverb",
    "SourceRecord",
    "TAG_DELIMITER",
    "MAX_TAG_BYTES",
    "parse_tags",
    # Errors
    "ProverbsError",
    "ConfigError",
    "BackendConnectionError",
    "StateError",
    "WriteError",
    "QueryError",
    "ImportFailedError",
]
