"""In-memory implementation of the DocumentStore interface.

This implementation is intended for testing and development purposes only.
It does not persist data across processes.

Concurrency model: a single re-entrant lock guards all collections. Single
document operations take it briefly; `transaction()` holds it for the whole
block, so transactions are serialized and never observe each other's partial
writes. Rollback replays an undo log of the previous document versions.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field

from conceptual.domain.values import Value, copy_record
from conceptual.interfaces.store import (
    ID_FIELD,
    Collection,
    Document,
    DocumentStore,
    DuplicateIdError,
    Update,
    UpdateResult,
    ensure_writable,
    validate_namespace,
)

from .documents import apply_update, matches, sort_by_id

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class InMemoryStoreData:
    """Shared backing data for an in-memory store.

    Maps each namespace to its documents, keyed by `_id`. Stored documents are
    never handed out directly; readers always receive copies.
    """

    collections: dict[str, dict[str, Document]] = field(default_factory=dict)


# (namespace, doc_id, previous version or None if the document did not exist)
_UndoEntry = tuple[str, str, Document | None]


class InMemoryCollection(Collection):
    """Collection backed by a dict inside `InMemoryStoreData`."""

    def __init__(self, store: InMemoryDocumentStore, namespace: str) -> None:
        self._store = store
        self.namespace = namespace

    @property
    def _docs(self) -> dict[str, Document]:
        return self._store.data.collections[self.namespace]

    def find(self, where: Mapping[str, Value] | None = None) -> list[Document]:
        with self._store.lock:
            if where and isinstance(doc_id := where.get(ID_FIELD), str):
                candidates = [d for d in (self._docs.get(doc_id),) if d is not None]
            else:
                candidates = list(self._docs.values())
            found = [copy_record(doc) for doc in candidates if matches(doc, where)]
        return sort_by_id(found)

    def insert_one(self, document: Mapping[str, Value]) -> None:
        ensure_writable(self.namespace, "insert_one")
        doc_id = str(document[ID_FIELD])
        with self._store.lock:
            if doc_id in self._docs:
                raise DuplicateIdError(self.namespace, doc_id)
            self._store.record_undo(self.namespace, doc_id, None)
            self._docs[doc_id] = copy_record(document)

    def update_one(
        self, doc_id: str, update: Update, *, upsert: bool = False
    ) -> UpdateResult:
        ensure_writable(self.namespace, "update_one")
        with self._store.lock:
            current = self._docs.get(doc_id)
            if current is None:
                if not upsert:
                    return UpdateResult(matched=False, modified=False)
                self._store.record_undo(self.namespace, doc_id, None)
                self._docs[doc_id] = apply_update({ID_FIELD: doc_id}, update)
                return UpdateResult(matched=False, modified=True, upserted=True)
            updated = apply_update(current, update)
            if updated == current:
                return UpdateResult(matched=True, modified=False)
            self._store.record_undo(self.namespace, doc_id, current)
            self._docs[doc_id] = updated
            return UpdateResult(matched=True, modified=True)

    def update_many(self, where: Mapping[str, Value], update: Update) -> int:
        ensure_writable(self.namespace, "update_many")
        with self._store.lock:
            return sum(
                self.update_one(str(doc[ID_FIELD]), update).modified
                for doc in self.find(where)
            )

    def delete_one(self, doc_id: str) -> bool:
        ensure_writable(self.namespace, "delete_one")
        with self._store.lock:
            current = self._docs.pop(doc_id, None)
            if current is None:
                return False
            self._store.record_undo(self.namespace, doc_id, current)
            return True


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store."""

    def __init__(self, data: InMemoryStoreData | None = None) -> None:
        self.data = data if data is not None else InMemoryStoreData()
        self.lock = threading.RLock()
        self._local = threading.local()

    def collection(self, namespace: str) -> Collection:
        validate_namespace(namespace)
        with self.lock:
            if namespace not in self.data.collections:
                logger.debug("Binding in-memory collection %s", namespace)
                self.data.collections[namespace] = {}
        return InMemoryCollection(self, namespace)

    def namespaces(self) -> list[str]:
        with self.lock:
            return sorted(self.data.collections)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "undo", None) is not None:
            yield  # join the enclosing transaction
            return
        with self.lock:
            self._local.undo = []
            try:
                yield
            except BaseException:
                self._rollback(self._local.undo)
                raise
            finally:
                self._local.undo = None

    def record_undo(self, namespace: str, doc_id: str, previous: Document | None) -> None:
        """Remember how to undo a write if a transaction is open on this thread."""
        undo: list[_UndoEntry] | None = getattr(self._local, "undo", None)
        if undo is not None:
            undo.append((namespace, doc_id, previous))

    def _rollback(self, undo: list[_UndoEntry]) -> None:
        logger.debug("Rolling back %d in-memory write(s)", len(undo))
        for namespace, doc_id, previous in reversed(undo):
            docs = self.data.collections[namespace]
            if previous is None:
                docs.pop(doc_id, None)
            else:
                docs[doc_id] = previous
