"""Document store adapters.

- `InMemoryDocumentStore`: process-local store for tests and development.
- `SqlAlchemyDocumentStore`: relational store (SQLite, PostgreSQL) with one
  table per namespace.
"""

from .memory import InMemoryDocumentStore, InMemoryStoreData
from .sqlalchemy_store import SqlAlchemyDocumentStore

__all__ = ["InMemoryDocumentStore", "InMemoryStoreData", "SqlAlchemyDocumentStore"]
