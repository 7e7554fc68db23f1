"""Supported SQL dialects.

The document store needs dialect-specific statements for conflict-free
inserts; this enum keeps the supported backends in one place.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine


class UnsupportedDialect(Exception):
    """Raised when an unsupported database dialect is encountered."""


class DialectName(str, Enum):
    """Supported SQLAlchemy dialect names.

    Attributes:
        POSTGRES: PostgreSQL dialect (``"postgresql"``).
        SQLITE:   SQLite dialect (``"sqlite"``).
    """

    POSTGRES = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def from_sqlalchemy(cls, obj: Engine | Connection) -> DialectName:
        """Extract the dialect from a SQLAlchemy Engine or Connection.

        Driver suffixes and the common ``postgres``/``pg`` aliases are accepted.

        Raises:
            UnsupportedDialect: if the dialect is not recognized or supported.
        """
        name = obj.dialect.name.strip().lower().split("+", 1)[0]
        if name in {"postgres", "postgresql", "pg"}:
            return cls.POSTGRES
        if name == "sqlite":
            return cls.SQLITE
        raise UnsupportedDialect(f"Unsupported dialect: {obj.dialect.name!r}")
