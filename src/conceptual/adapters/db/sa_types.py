"""Custom SQLAlchemy types for conceptual."""

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

__all__ = ["PORTABLE_JSON"]

#: JSON on SQLite, JSONB on PostgreSQL.
PORTABLE_JSON = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)
