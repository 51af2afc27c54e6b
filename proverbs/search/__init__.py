"""Query functionality for the proverb store.

Main components:
- QueryEngine: list, case-insensitive substring and exact tag queries
  dispatched to whichever backend is active
"""

from .engine import QueryEngine

__all__ = ["QueryEngine"]
