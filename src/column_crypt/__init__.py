"""Column Crypt: transparent column-level encryption for query results."""

__version__ = "0.1.0"
