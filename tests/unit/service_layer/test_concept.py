"""Unit tests for concept declaration and the closed operation surface."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict

import pytest

from conceptual.domain import ID
from conceptual.domain.errors import (
    ConceptDefinitionError,
    SchemaError,
    UnknownOperationError,
)
from conceptual.service_layer import Concept, ConceptSpec, Relation, action, query


class FlagDoc(TypedDict):
    _id: ID
    raised: bool


class OwnerDoc(TypedDict):
    _id: ID
    flags: list[ID]


@dataclass
class Blob:
    data: bytes


class BlobDoc(TypedDict):
    _id: ID
    blob: Blob


class NestedDoc(TypedDict):
    _id: ID
    matrix: list[list[int]]


class Flagging(Concept):
    """Test concept with one action and one query per relation."""

    purpose = "raise and lower flags"
    principle = "after raise_flag(f), _flags(_id=f) shows it raised"

    flags = Relation(FlagDoc)
    owners = Relation(OwnerDoc)

    @action(idempotent=True)
    def raise_flag(self, *, flag: ID) -> None:
        """Raise a flag."""
        self.flags.update(flag, assign={"raised": True}, upsert=True)

    @action
    def claim(self, *, flag: ID, owner: ID) -> dict:
        """Record an owner for a flag."""
        self.owners.update(owner, add_to_set={"flags": flag}, upsert=True)
        return {"owner": owner}

    @query(over="flags")
    def _flags(self, where):
        """Flags matching the filter."""
        return self.flags.find(where)

    @query(over="owners")
    def _owners(self, where):
        """Owners matching the filter."""
        return self.owners.find(where)


class RenamedFlagging(Flagging):
    """Same surface, different namespaces."""

    name = "Banner"


@pytest.fixture
def flagging(memory_store) -> Flagging:
    return Flagging(memory_store)


# ---------------------------------------------------------------------------
# Surface
# ---------------------------------------------------------------------------


def test_surface_is_collected_at_class_creation():
    """RELATIONS, ACTIONS and QUERIES are known without an instance."""
    assert set(Flagging.RELATIONS) == {"flags", "owners"}
    assert set(Flagging.ACTIONS) == {"raise_flag", "claim"}
    assert set(Flagging.QUERIES) == {"_flags", "_owners"}


def test_surface_is_read_only():
    """The declared surface cannot be extended after the fact."""
    with pytest.raises(TypeError):
        Flagging.ACTIONS["sneak"] = Flagging.ACTIONS["claim"]  # type: ignore[index]


def test_name_defaults_to_class_name(flagging: Flagging):
    """Collections are namespaced by the concept name."""
    assert Flagging.name == "Flagging"
    assert flagging.namespaces == ["Flagging.flags", "Flagging.owners"]


def test_name_override_renames_namespaces(memory_store):
    """A subclass may set `name`; it inherits the surface."""
    banner = RenamedFlagging(memory_store)

    assert banner.namespaces == ["Banner.flags", "Banner.owners"]
    assert set(RenamedFlagging.ACTIONS) == set(Flagging.ACTIONS)
    assert banner.raise_flag(flag="f1") == {}
    assert memory_store.namespaces() == ["Banner.flags", "Banner.owners"]


def test_describe():
    """describe() lists relations with their attributes and every operation."""
    spec = Flagging.describe()

    assert isinstance(spec, ConceptSpec)
    assert spec.name == "Flagging"
    assert spec.purpose == "raise and lower flags"
    assert spec.relations == {
        "Flagging.flags": ("_id", "raised"),
        "Flagging.owners": ("_id", "flags"),
    }
    assert [a.name for a in spec.actions] == ["claim", "raise_flag"]
    assert [q.name for q in spec.queries] == ["_flags", "_owners"]
    assert spec.actions[1].idempotent is True


def test_invoke_routes_declared_operations(flagging: Flagging):
    """invoke() dispatches by name to actions and queries."""
    assert flagging.invoke("raise_flag", {"flag": "f1"}) == {}
    assert flagging.invoke("claim", {"flag": "f1", "owner": "o1"}) == {"owner": "o1"}
    assert flagging.invoke("_flags", {"_id": "f1"}) == [{"_id": "f1", "raised": True}]
    assert flagging.invoke("_owners") == [{"_id": "o1", "flags": ["f1"]}]


@pytest.mark.parametrize("operation", ["nope", "fresh_id", "describe", "__init__"])
def test_invoke_refuses_undeclared_names(flagging: Flagging, operation):
    """Only declared operations are reachable by name."""
    with pytest.raises(UnknownOperationError) as exc_info:
        flagging.invoke(operation, {})
    assert exc_info.value.operation == operation


def test_fresh_id_is_unique():
    """fresh_id() never repeats."""
    ids = {Flagging.fresh_id() for _ in range(100)}
    assert len(ids) == 100


# ---------------------------------------------------------------------------
# Declaration rules
# ---------------------------------------------------------------------------


def test_concept_needs_a_relation():
    """A concept without state is refused."""
    with pytest.raises(ConceptDefinitionError, match="no state relations"):

        class Stateless(Concept):  # pylint: disable=unused-variable
            @action
            def poke(self) -> None:
                """Do nothing."""


def test_action_names_must_not_start_with_underscore():
    """Underscore names are reserved for queries."""
    with pytest.raises(ConceptDefinitionError, match="must not start with '_'"):

        class Bad(Concept):  # pylint: disable=unused-variable
            flags = Relation(FlagDoc)

            @action
            def _poke(self) -> None:
                """Hidden action."""


def test_query_names_must_start_with_underscore():
    """Queries are distinguished by their leading underscore."""
    with pytest.raises(ConceptDefinitionError, match="must start with '_'"):

        class Bad(Concept):  # pylint: disable=unused-variable
            flags = Relation(FlagDoc)

            @query(over="flags")
            def flags_now(self, where):
                """Misnamed query."""
                return self.flags.find(where)


def test_query_over_must_name_a_relation():
    """A query cannot project a relation its concept does not declare."""
    with pytest.raises(ConceptDefinitionError, match="unknown relation 'owners'"):

        class Bad(Concept):  # pylint: disable=unused-variable
            flags = Relation(FlagDoc)

            @query(over="owners")
            def _owners(self, where):
                """Projects a relation declared elsewhere."""
                return []


@pytest.mark.parametrize("schema", [BlobDoc, NestedDoc])
def test_relation_schema_must_be_in_value_universe(schema):
    """Rich objects and nested collections cannot be stored."""
    with pytest.raises(SchemaError):

        class Bad(Concept):  # pylint: disable=unused-variable
            things = Relation(schema)


def test_action_fields_must_be_in_value_universe():
    """Action inputs are restricted like stored attributes."""
    with pytest.raises(SchemaError):

        class Bad(Concept):  # pylint: disable=unused-variable
            flags = Relation(FlagDoc)

            @action
            def upload(self, *, blob: Blob) -> None:
                """Takes a rich object."""
