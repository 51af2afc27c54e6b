"""Import formats for proverb corpora.

- **CSV**: ``tags,proverb`` rows with ``|``-joined tags
"""

from .csv import CsvImporter

__all__ = ["CsvImporter"]
