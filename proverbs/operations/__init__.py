"""Operations on the proverb store.

- importer.py: atomic bulk import of source files into a backend
"""

from .importer import ImportResult, ProverbImporter

__all__ = ["ImportResult", "ProverbImporter"]
