"""Interfaces for the persistent document store.

A `DocumentStore` is the shared, externally owned resource injected into every
concept instance. It hands out one `Collection` per namespace
(`<ConceptName>.<relationName>`); each collection holds documents keyed by an
identifier in the `_id` field.

Guarantees every adapter must provide:

- single-document writes (`insert_one`, `update_one`, `delete_one`) are atomic;
  concurrent updates to the same document never lose each other's changes.
- `transaction()` makes every write performed inside it all-or-nothing: when
  the block raises, all of them are undone before the exception propagates.
  Nested `transaction()` blocks join the outermost one.
- reads inside a transaction observe that transaction's own writes.
- every write raises `ReadOnlyViolation` inside `read_only()` (see `guard`).
"""

from __future__ import annotations

import abc
import re
from collections.abc import Mapping
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import TypeAlias

from conceptual.domain.values import Primitive, Value

from .errors import InvalidNamespaceError

Document: TypeAlias = dict[str, Value]

ID_FIELD = "_id"

NAMESPACE_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\.[A-Za-z_][A-Za-z0-9_]*$")


def validate_namespace(namespace: str) -> str:
    """Return `namespace` unchanged if it is `<ConceptName>.<relationName>`.

    Raises:
        InvalidNamespaceError: If the namespace is malformed.
    """
    if not NAMESPACE_PATTERN.match(namespace):
        raise InvalidNamespaceError(namespace)
    return namespace


@dataclass(frozen=True, slots=True)
class Update:
    """A single-document update, expressed as field operators.

    Operators are applied in declaration order: `assign`, `unset`,
    `add_to_set`, `push`, `pull`.

    Attributes:
        assign: Fields to overwrite.
        unset: Fields to remove.
        add_to_set: Append the value to the list field unless already present.
        push: Append the value to the list field unconditionally.
        pull: Remove every occurrence of the value from the list field.
    """

    assign: Mapping[str, Value] = field(default_factory=dict)
    unset: tuple[str, ...] = ()
    add_to_set: Mapping[str, Primitive] = field(default_factory=dict)
    push: Mapping[str, Primitive] = field(default_factory=dict)
    pull: Mapping[str, Primitive] = field(default_factory=dict)

    def fields(self) -> set[str]:
        """Return every field name the update touches."""
        return {
            *self.assign,
            *self.unset,
            *self.add_to_set,
            *self.push,
            *self.pull,
        }


@dataclass(frozen=True, slots=True)
class UpdateResult:
    """Outcome of `Collection.update_one`."""

    matched: bool
    modified: bool
    upserted: bool = False


class Collection(abc.ABC):
    """A namespaced set of documents keyed by `_id`."""

    namespace: str

    @abc.abstractmethod
    def find(self, where: Mapping[str, Value] | None = None) -> list[Document]:
        """Return copies of every document matching `where`.

        Matching is per-field equality. When the stored value is a list and the
        filter value is a scalar, the field matches if the list contains it.
        An empty or missing filter matches every document. Results are ordered
        by `_id`.
        """

    def find_one(self, where: Mapping[str, Value] | None = None) -> Document | None:
        """Return the first document matching `where`, or None."""
        found = self.find(where)
        return found[0] if found else None

    def count(self, where: Mapping[str, Value] | None = None) -> int:
        """Return the number of documents matching `where`."""
        return len(self.find(where))

    @abc.abstractmethod
    def insert_one(self, document: Mapping[str, Value]) -> None:
        """Insert a new document carrying an `_id`.

        Raises:
            DuplicateIdError: If a document with the same `_id` already exists.
        """

    @abc.abstractmethod
    def update_one(
        self, doc_id: str, update: Update, *, upsert: bool = False
    ) -> UpdateResult:
        """Atomically apply `update` to the document with `_id == doc_id`.

        When no such document exists and `upsert` is true, a new document
        `{"_id": doc_id}` is created and the update applied to it.
        """

    @abc.abstractmethod
    def update_many(self, where: Mapping[str, Value], update: Update) -> int:
        """Apply `update` to every matching document; return how many changed."""

    @abc.abstractmethod
    def delete_one(self, doc_id: str) -> bool:
        """Delete the document with `_id == doc_id`; return whether it existed."""


class DocumentStore(abc.ABC):
    """Shared persistent store handing out namespaced collections."""

    @abc.abstractmethod
    def collection(self, namespace: str) -> Collection:
        """Bind (creating if needed) and return the collection for `namespace`.

        Raises:
            InvalidNamespaceError: If `namespace` is not `Concept.relation`.
        """

    @abc.abstractmethod
    def namespaces(self) -> list[str]:
        """Return the sorted names of every collection bound so far."""

    @abc.abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Return a context manager making enclosed writes all-or-nothing."""
