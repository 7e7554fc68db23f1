"""Unit tests for the shared document mechanics."""

import pytest

from conceptual.adapters.store.documents import apply_update, matches, sort_by_id
from conceptual.interfaces.store import Update


@pytest.mark.parametrize(
    "where,expected",
    [
        (None, True),
        ({}, True),
        ({"name": "x"}, True),
        ({"name": "y"}, False),
        ({"labels": "l1"}, True),
        ({"labels": "l9"}, False),
        ({"labels": ["l1", "l2"]}, True),
        ({"labels": ["l1"]}, False),
        ({"missing": None}, True),
        ({"missing": "x"}, False),
        ({"name": "x", "labels": "l2"}, True),
    ],
)
def test_matches(where, expected):
    """Filters are per-field equality with scalar-in-list membership."""
    doc = {"_id": "a", "name": "x", "labels": ["l1", "l2"]}
    assert matches(doc, where) is expected


def test_apply_update_returns_a_new_document():
    """The input document is never mutated."""
    doc = {"_id": "a", "labels": ["l1"]}
    out = apply_update(doc, Update(push={"labels": "l2"}))
    assert out == {"_id": "a", "labels": ["l1", "l2"]}
    assert doc == {"_id": "a", "labels": ["l1"]}


def test_apply_update_operator_order():
    """assign, unset, add_to_set, push and pull apply in that order."""
    doc = {"_id": "a", "tags": ["x"], "gone": 1}
    update = Update(
        assign={"tags": ["y"]},
        unset=("gone",),
        add_to_set={"tags": "y"},
        push={"tags": "z"},
        pull={"tags": "y"},
    )
    assert apply_update(doc, update) == {"_id": "a", "tags": ["z"]}


def test_apply_update_keeps_the_id():
    """Even an explicit assign cannot change `_id`."""
    out = apply_update({"_id": "a"}, Update(assign={"_id": "b"}))
    assert out["_id"] == "a"


def test_list_operator_on_scalar_raises():
    """List operators require list fields."""
    with pytest.raises(TypeError, match="not a list"):
        apply_update({"_id": "a", "name": "x"}, Update(add_to_set={"name": "y"}))


def test_sort_by_id():
    """Documents sort by `_id`."""
    docs = [{"_id": "b"}, {"_id": "a"}, {"_id": "c"}]
    assert [d["_id"] for d in sort_by_id(docs)] == ["a", "b", "c"]
