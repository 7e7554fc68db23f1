"""State binder: maps declared state relations onto store collections.

A concept declares its relations as class attributes::

    class LabelDoc(TypedDict):
        _id: ID
        name: str

    class Labeling(Concept):
        labels = Relation(LabelDoc)

At construction, each declared relation is bound to exactly one collection
named ``<ConceptName>.<relationName>``; on the instance, ``self.labels`` is
the resulting `BoundRelation`. Bound relations only accept documents whose
attributes are declared by the schema and whose values are in the value
universe, and they refuse every write while a query is executing.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from conceptual.domain.errors import InvalidValueError, SchemaError
from conceptual.domain.values import (
    Primitive,
    Value,
    check_annotation,
    normalize_record,
    normalize_value,
)
from conceptual.interfaces.store import (
    ID_FIELD,
    Document,
    Update,
    UpdateResult,
    ensure_writable,
)

if TYPE_CHECKING:
    from conceptual.interfaces.store import Collection, DocumentStore

logger = logging.getLogger(__name__)

S = TypeVar("S")  # Schema (a TypedDict)


class Relation(Generic[S]):
    """Declaration of a state relation on a concept class.

    Args:
        schema: A `TypedDict` whose annotations list the relation's attributes.
            An `_id` attribute is implied when the schema omits it.
    """

    def __init__(self, schema: type[S]) -> None:
        self.schema = schema
        self.name: str = ""
        self._attributes: dict[str, Any] | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return instance.bindings[self.name]

    @property
    def attributes(self) -> dict[str, Any]:
        """Declared attribute names mapped to their (resolved) types."""
        if self._attributes is None:
            hints = dict(typing.get_type_hints(self.schema))
            hints.setdefault(ID_FIELD, str)
            self._attributes = hints
        return self._attributes

    def check(self, where: str) -> None:
        """Check every declared attribute type against the value universe.

        Raises:
            SchemaError: If the schema cannot be resolved or declares a richer type.
        """
        try:
            attributes = self.attributes
        except (NameError, TypeError) as e:
            raise SchemaError(where, f"cannot resolve annotations ({e})") from e
        for attribute, annotation in attributes.items():
            check_annotation(annotation, where=f"{where}.{attribute}")


class BoundRelation:
    """A relation bound to its collection for one concept instance."""

    def __init__(self, relation: Relation, namespace: str, collection: Collection):
        self.relation = relation
        self.namespace = namespace
        self._collection = collection

    @property
    def attributes(self) -> frozenset[str]:
        """Names of the declared attributes, `_id` included."""
        return frozenset(self.relation.attributes)

    # --- reads ---

    def find(self, where: Mapping[str, Any] | None = None) -> list[Document]:
        """Return every document matching `where` (see `Collection.find`)."""
        criteria = self._checked(where or {}, operation="find")
        return self._collection.find(criteria)

    def get(self, doc_id: str) -> Document | None:
        """Return the document with the given `_id`, or None."""
        return self._collection.find_one({ID_FIELD: doc_id})

    def exists(self, doc_id: str) -> bool:
        """Return True if a document with the given `_id` exists."""
        return self.get(doc_id) is not None

    def count(self, where: Mapping[str, Any] | None = None) -> int:
        """Return the number of documents matching `where`."""
        return self._collection.count(self._checked(where or {}, operation="count"))

    # --- writes ---

    def insert(self, document: Mapping[str, Any]) -> None:
        """Insert a new document; it must carry an `_id`."""
        self._ensure_writable("insert")
        doc = self._checked(document, operation="insert")
        self._check_id(doc.get(ID_FIELD), "insert")
        self._collection.insert_one(doc)

    def update(
        self,
        doc_id: str,
        *,
        assign: Mapping[str, Any] | None = None,
        unset: Sequence[str] = (),
        add_to_set: Mapping[str, Primitive] | None = None,
        push: Mapping[str, Primitive] | None = None,
        pull: Mapping[str, Primitive] | None = None,
        upsert: bool = False,
    ) -> UpdateResult:
        """Atomically update one document (see `Update` for operator semantics)."""
        self._ensure_writable("update")
        self._check_id(doc_id, "update")
        return self._collection.update_one(
            doc_id,
            self._build_update(assign, unset, add_to_set, push, pull),
            upsert=upsert,
        )

    def update_many(
        self,
        where: Mapping[str, Any],
        *,
        assign: Mapping[str, Any] | None = None,
        unset: Sequence[str] = (),
        add_to_set: Mapping[str, Primitive] | None = None,
        push: Mapping[str, Primitive] | None = None,
        pull: Mapping[str, Primitive] | None = None,
    ) -> int:
        """Update every matching document; return how many changed."""
        self._ensure_writable("update_many")
        return self._collection.update_many(
            self._checked(where, operation="update_many"),
            self._build_update(assign, unset, add_to_set, push, pull),
        )

    def delete(self, doc_id: str) -> bool:
        """Delete the document with the given `_id`; return whether it existed."""
        self._ensure_writable("delete")
        self._check_id(doc_id, "delete")
        return self._collection.delete_one(doc_id)

    # --- internals ---

    def _ensure_writable(self, operation: str) -> None:
        ensure_writable(self.namespace, operation)

    def _check_id(self, doc_id: object, operation: str) -> None:
        if not isinstance(doc_id, str):
            raise InvalidValueError(
                f"{self.namespace}.{operation}",
                f"`_id` must be a str, got {type(doc_id).__name__}",
            )

    def _checked(self, record: Mapping[str, Any], *, operation: str) -> dict[str, Value]:
        where = f"{self.namespace}.{operation}"
        if unknown := set(record) - self.attributes:
            raise InvalidValueError(where, f"undeclared attributes {sorted(unknown)}")
        return normalize_record(record, where=where)

    def _build_update(
        self,
        assign: Mapping[str, Any] | None,
        unset: Sequence[str],
        add_to_set: Mapping[str, Primitive] | None,
        push: Mapping[str, Primitive] | None,
        pull: Mapping[str, Primitive] | None,
    ) -> Update:
        update = Update(
            assign=self._checked(assign or {}, operation="update"),
            unset=tuple(unset),
            add_to_set=self._checked_elements(add_to_set),
            push=self._checked_elements(push),
            pull=self._checked_elements(pull),
        )
        if unknown := update.fields() - self.attributes:
            raise InvalidValueError(
                f"{self.namespace}.update", f"undeclared attributes {sorted(unknown)}"
            )
        if ID_FIELD in update.fields():
            raise InvalidValueError(f"{self.namespace}.update", "`_id` is immutable")
        return update

    def _checked_elements(
        self, elements: Mapping[str, Primitive] | None
    ) -> dict[str, Primitive]:
        out: dict[str, Primitive] = {}
        for key, value in (elements or {}).items():
            normalized = normalize_value(value, where=f"{self.namespace}.{key}")
            if isinstance(normalized, list):
                raise InvalidValueError(
                    f"{self.namespace}.{key}", "list operators take a single element"
                )
            out[key] = normalized
        return out


def namespace_for(concept_name: str, relation_name: str) -> str:
    """Return the collection namespace of a concept's relation."""
    return f"{concept_name}.{relation_name}"


def bind_relations(
    concept_name: str, relations: Mapping[str, Relation], store: DocumentStore
) -> dict[str, BoundRelation]:
    """Bind each declared relation to its own collection in `store`."""
    bindings = {}
    for name, relation in relations.items():
        namespace = namespace_for(concept_name, name)
        bindings[name] = BoundRelation(relation, namespace, store.collection(namespace))
    logger.debug("Bound %s to %s", concept_name, sorted(b.namespace for b in bindings.values()))
    return bindings
