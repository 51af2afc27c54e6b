"""Query engine over the active storage backend."""

import logging
import time
from collections import Counter
from collections.abc import Callable

import msgspec

from ..core.exceptions import QueryError
from ..core.models import Proverb
from ..storage.backends.base import BaseBackend

logger = logging.getLogger(__name__)


class QueryEngine:
    """Dispatches list, substring and tag queries to a backend.

    Backends narrow results with their native query facilities; the engine
    re-checks every result against the canonical predicates so all variants
    answer identically:

    - substring search is case-insensitive and unanchored
    - tag search is exact and case-sensitive
    """

    def __init__(self, backend: BaseBackend):
        """Initialize query engine.

        Args:
            backend: Opened storage backend to query
        """
        self.backend = backend
        self._last_query_time = 0.0

    @property
    def last_query_ms(self) -> float:
        """Duration of the most recent query in milliseconds."""
        return self._last_query_time * 1000

    def all(self) -> list[Proverb]:
        """Return every stored proverb."""
        return self._run("all", self.backend.list_all)

    def contains(self, text: str) -> list[Proverb]:
        """Find proverbs whose text contains ``text``, ignoring case.

        Args:
            text: Substring to look for; empty matches every proverb

        Returns:
            Matching proverbs, possibly none
        """
        results = self._run("contains", self.backend.find_contains, text)
        return [proverb for proverb in results if proverb.matches(text)]

    def tagged(self, tag: str) -> list[Proverb]:
        """Find proverbs carrying exactly ``tag``.

        Args:
            tag: Tag to match, compared case-sensitively

        Returns:
            Matching proverbs, possibly none
        """
        results = self._run("tagged", self.backend.find_by_tag, tag)
        return [proverb for proverb in results if proverb.has_tag(tag)]

    def tags(self) -> list[tuple[str, int]]:
        """Count proverbs per tag, most used first, ties by name."""
        counts = Counter(tag for proverb in self.all() for tag in proverb.tags)
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))

    def _run(self, operation: str, query: Callable, *args) -> list[Proverb]:
        start = time.perf_counter()
        try:
            results = query(*args)
        except (ValueError, msgspec.MsgspecError) as e:
            # Stored data that no longer satisfies the record invariants
            raise QueryError(self.backend.name, f"corrupt record: {e}") from e
        finally:
            self._last_query_time = time.perf_counter() - start
        logger.debug(
            f"{operation}{args!r} on {self.backend.name}: {len(results)} results "
            f"in {self.last_query_ms:.1f} ms"
        )
        return results
