"""Document store interface package."""

from .errors import (
    ConcurrentUpdateError,
    DuplicateIdError,
    InvalidNamespaceError,
    StoreError,
    StoreUnavailableError,
)
from .guard import ensure_writable, is_read_only, read_only
from .store import (
    ID_FIELD,
    Collection,
    Document,
    DocumentStore,
    Update,
    UpdateResult,
    validate_namespace,
)

__all__ = [
    "ID_FIELD",
    "Collection",
    "Document",
    "DocumentStore",
    "Update",
    "UpdateResult",
    "validate_namespace",
    "ensure_writable",
    "is_read_only",
    "read_only",
    "StoreError",
    "StoreUnavailableError",
    "DuplicateIdError",
    "InvalidNamespaceError",
    "ConcurrentUpdateError",
]
