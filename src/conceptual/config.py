"""Configuration utilities for conceptual.

This module centralizes small helpers and constants related to application
configuration. Everything is read from the environment.
"""

import os

DB_URL_ENVVAR = "CONCEPTUAL_DB_URL"  # pragma: no mutate
MEMORY_URL = "memory://"  # pragma: no mutate


class DatabaseUrlNotSetError(Exception):
    """Raised when the CONCEPTUAL_DB_URL environment variable is not set."""


def get_db_url() -> str:
    """Get the document store URL from the environment.

    Returns:
        The value of the `CONCEPTUAL_DB_URL` environment variable: either a
        SQLAlchemy database URL or `memory://` for the in-memory store.

    Raises:
        DatabaseUrlNotSetError: If `CONCEPTUAL_DB_URL` is not set.
    """
    if not (url := os.environ.get(DB_URL_ENVVAR)):
        raise DatabaseUrlNotSetError
    return url


def is_memory_url(url: str) -> bool:
    """Return True if `url` selects the in-memory document store."""
    return url == MEMORY_URL
