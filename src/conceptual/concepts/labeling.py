"""Labeling concept.

Items carry a set of labels; labels have a unique name. Items are owned by
some other concept and are referenced here only by their identifiers, so an
item entry exists in this concept from the first time a label is added to it.
"""

from __future__ import annotations

from typing import Any, TypedDict

from conceptual.domain import ID, ConflictError, NotFoundError, PreconditionError
from conceptual.service_layer import Concept, Relation, action, query


class LabelDoc(TypedDict):
    """A label."""

    _id: ID
    name: str


class ItemDoc(TypedDict):
    """Labels attached to an item; `_id` is the item's identifier."""

    _id: ID
    labels: list[ID]


class Labeling(Concept):
    """Attach named labels to items."""

    purpose = "organize items by attaching named labels to them"
    principle = (
        "after a label is created and added to an item, querying items by that "
        "label returns the item, until the label is deleted from it"
    )

    labels = Relation(LabelDoc)
    items = Relation(ItemDoc)

    # --- actions ---

    @action
    def create_label(self, *, name: str) -> None:
        """Create a label named `name`.

        Requires: `name` is not blank and no label is named `name`.
        Effects: adds a label with a fresh identifier and the given name.

        Name uniqueness is checked, not enforced by the store: two concurrent
        invocations with the same name may both succeed.
        """
        if not name.strip():
            raise PreconditionError("label name must not be blank")
        if self.labels.count({"name": name}):
            raise ConflictError("label already exists")
        self.labels.insert({"_id": self.fresh_id(), "name": name})

    @action(idempotent=True)
    def add_label(self, *, item: ID, label: ID) -> None:
        """Ensure `item` carries `label`.

        Requires: `label` exists.
        Effects: `label` is among the item's labels exactly once. Adding a
        label the item already carries changes nothing.
        """
        if not self.labels.exists(label):
            raise NotFoundError("label", label)
        self.items.update(item, add_to_set={"labels": label}, upsert=True)

    @action
    def delete_label(self, *, item: ID, label: ID) -> None:
        """Remove `label` from `item`.

        Requires: the item carries `label`.
        Effects: `label` is no longer among the item's labels.
        """
        if not self.items.count({"_id": item, "labels": label}):
            raise PreconditionError("item does not have label")
        self.items.update(item, pull={"labels": label})

    @action
    def retire_label(self, *, label: ID) -> dict[str, Any]:
        """Delete `label` and detach it from every item.

        Requires: `label` exists.
        Effects: the label is gone from both relations. Spans `labels` and
        `items`; both change or neither does.
        Returns: `{"detached": n}`, the number of items that carried it.
        """
        if not self.labels.delete(label):
            raise NotFoundError("label", label)
        detached = self.items.update_many({"labels": label}, pull={"labels": label})
        return {"detached": detached}

    # --- queries ---

    @query(over="labels")
    def _labels(self, where):
        """Labels matching the filter."""
        return self.labels.find(where)

    @query(over="items")
    def _items(self, where):
        """Items matching the filter; filter on `labels` to find carriers of a label."""
        return self.items.find(where)
