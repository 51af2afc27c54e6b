"""Exception classes for the proverb store.

Every error carries the process exit code the CLI reports for it.
"""


class ProverbsError(Exception):
    """Base exception for proverb store errors."""

    exit_code = 2


class ConfigError(ProverbsError):
    """Raised when the invocation or configuration is invalid."""

    exit_code = 1


class BackendConnectionError(ProverbsError):
    """Raised when a backend is unreachable or its handle is no longer valid."""

    def __init__(self, backend: str, message: str):
        """Initialize with backend name and message."""
        self.backend = backend
        super().__init__(f"{backend}: {message}")


class StateError(ProverbsError):
    """Raised when a bulk-load scope is used out of order."""

    pass


class WriteError(ProverbsError):
    """Raised when a backend rejects an insert or a commit."""

    def __init__(self, backend: str, message: str):
        """Initialize with backend name and message."""
        self.backend = backend
        super().__init__(f"{backend}: write rejected: {message}")


class QueryError(ProverbsError):
    """Raised when a backend fails to execute a query."""

    def __init__(self, backend: str, message: str):
        """Initialize with backend name and message."""
        self.backend = backend
        super().__init__(f"{backend}: query failed: {message}")


class ImportFailedError(ProverbsError):
    """Raised when an import is aborted; the store is left unchanged."""

    exit_code = 3

    def __init__(self, message: str, line: int | None = None):
        """Initialize with message and the offending source line, if known."""
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
