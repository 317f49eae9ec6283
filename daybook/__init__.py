"""Local persistence layer for transactions, notes and the day index."""

__version__ = "0.1.0"
