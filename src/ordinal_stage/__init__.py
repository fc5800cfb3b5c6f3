"""Ordinal Stage: ordering, reconciliation and reorder service for published records."""

__version__ = "0.1.0"
