"""Persistence-related exceptions."""


class PersistenceError(Exception):
    """Base exception for party store failures."""


class DatabaseError(PersistenceError):
    """SQLite operation failed for a reason other than a duplicate row."""
