"""Base class for concepts.

A concept is declared once, as a class, and instantiated with the shared
document store::

    class Labeling(Concept):
        purpose = "organize items by attaching named labels"

        labels = Relation(LabelDoc)
        items = Relation(ItemDoc)

        @action
        def create_label(self, *, name: str) -> None: ...

        @query(over="labels")
        def _labels(self, where): ...

    labeling = Labeling(store)

The set of relations, actions and queries is collected when the class is
created and never changes afterwards, so tooling can enumerate a concept's
complete surface without instantiating it (see `Concept.describe`).

Declaration rules, checked at class creation:

- at least one relation; every relation attribute in the value universe;
- action names do not start with an underscore, query names do;
- action parameters are required keyword-only fields in the value universe;
- a query's `over` names a relation of the same concept.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar

from conceptual.domain.errors import ConceptDefinitionError, UnknownOperationError
from conceptual.domain.ids import ID
from conceptual.domain.values import check_annotation
from conceptual.interfaces.store import DocumentStore

from .binder import BoundRelation, Relation, bind_relations, namespace_for
from .identifiers import fresh_id
from .operations import OperationKind, OperationSpec, field_types, get_operation

logger = logging.getLogger(__name__)

QUERY_PREFIX = "_"


@dataclass(frozen=True, slots=True)
class ConceptSpec:
    """Static description of a concept's complete surface."""

    name: str
    purpose: str
    relations: Mapping[str, tuple[str, ...]]  # namespace -> attribute names
    actions: tuple[OperationSpec, ...]
    queries: tuple[OperationSpec, ...]


class Concept:
    """Base class for every concept.

    Class attributes:
        name: Concept name used to namespace its collections. Defaults to the
            class name.
        purpose: One-line statement of what the concept is for.
        principle: The concept's canonical illustrative scenario.
        RELATIONS: Declared relations, by name.
        ACTIONS: Declared actions, by name.
        QUERIES: Declared queries, by name.
    """

    name: ClassVar[str]
    purpose: ClassVar[str] = ""
    principle: ClassVar[str] = ""

    RELATIONS: ClassVar[Mapping[str, Relation]] = MappingProxyType({})
    ACTIONS: ClassVar[Mapping[str, OperationSpec]] = MappingProxyType({})
    QUERIES: ClassVar[Mapping[str, OperationSpec]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.name = cls.__dict__.get("name", cls.__name__)

        relations: dict[str, Relation] = {}
        operations: dict[str, OperationSpec] = {}
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                if isinstance(value, Relation):
                    relations[attr] = value
                elif (spec := get_operation(value)) is not None:
                    operations[attr] = spec

        if not relations:
            raise ConceptDefinitionError(cls.name, "declares no state relations")
        for relation_name, relation in relations.items():
            relation.check(namespace_for(cls.name, relation_name))

        actions = {n: s for n, s in operations.items() if s.kind is OperationKind.ACTION}
        queries = {n: s for n, s in operations.items() if s.kind is OperationKind.QUERY}
        for action_name in actions:
            if action_name.startswith(QUERY_PREFIX):
                raise ConceptDefinitionError(
                    cls.name, f"action '{action_name}' must not start with '_'"
                )
            _check_action_fields(cls, action_name)
        for query_name, spec in queries.items():
            if not query_name.startswith(QUERY_PREFIX):
                raise ConceptDefinitionError(
                    cls.name, f"query '{query_name}' must start with '_'"
                )
            if spec.relation is not None and spec.relation not in relations:
                raise ConceptDefinitionError(
                    cls.name,
                    f"query '{query_name}' projects unknown relation '{spec.relation}'",
                )

        cls.RELATIONS = MappingProxyType(relations)
        cls.ACTIONS = MappingProxyType(actions)
        cls.QUERIES = MappingProxyType(queries)

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.bindings: dict[str, BoundRelation] = bind_relations(
            self.name, self.RELATIONS, store
        )
        logger.debug("Initialized concept %s", self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(store={self.store!r})"

    @staticmethod
    def fresh_id() -> ID:
        """Allocate a new entity identifier."""
        return fresh_id()

    @property
    def namespaces(self) -> list[str]:
        """The collection namespaces bound by this instance."""
        return sorted(binding.namespace for binding in self.bindings.values())

    @classmethod
    def describe(cls) -> ConceptSpec:
        """Return the static description of this concept's surface."""
        return ConceptSpec(
            name=cls.name,
            purpose=cls.purpose,
            relations={
                namespace_for(cls.name, rel_name): tuple(sorted(relation.attributes))
                for rel_name, relation in sorted(cls.RELATIONS.items())
            },
            actions=tuple(spec for _, spec in sorted(cls.ACTIONS.items())),
            queries=tuple(spec for _, spec in sorted(cls.QUERIES.items())),
        )

    def invoke(self, operation: str, record: Mapping[str, Any] | None = None) -> Any:
        """Invoke a declared action or query by name.

        Only names in `ACTIONS` or `QUERIES` are routed; this is the entry
        point an external coordinator uses.

        Raises:
            UnknownOperationError: If `operation` is not declared.
        """
        if operation not in self.ACTIONS and operation not in self.QUERIES:
            raise UnknownOperationError(self.name, operation)
        return getattr(self, operation)(record or {})


def _check_action_fields(cls: type[Concept], action_name: str) -> None:
    dispatcher = getattr(cls, action_name)
    try:
        hints = field_types(dispatcher.__wrapped__)
    except (NameError, TypeError) as e:
        raise ConceptDefinitionError(
            cls.name, f"cannot resolve annotations of '{action_name}' ({e})"
        ) from e
    for field, annotation in hints.items():
        check_annotation(annotation, where=f"{cls.name}.{action_name}.{field}")
