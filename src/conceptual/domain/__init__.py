"""Domain layer: identifiers, the record value universe, and error taxonomy."""

from .errors import (
    ConflictError,
    DomainError,
    FatalError,
    NotFoundError,
    PreconditionError,
)
from .ids import ID, unchecked_id

__all__ = [
    "ID",
    "unchecked_id",
    "DomainError",
    "NotFoundError",
    "ConflictError",
    "PreconditionError",
    "FatalError",
]
