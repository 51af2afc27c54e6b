"""Proverb store with interchangeable relational, document and key-value backends."""

__version__ = "1.0.0"
