"""Shared document mechanics for store adapters: filter matching and updates."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from conceptual.domain.values import Value, copy_record
from conceptual.interfaces.store import ID_FIELD, Document, Update


def matches(document: Mapping[str, Value], where: Mapping[str, Value] | None) -> bool:
    """Return True if `document` satisfies every field of `where`.

    A scalar filter value matches a list attribute that contains it; a list
    filter value only matches an equal list.
    """
    if not where:
        return True
    for key, expected in where.items():
        if key not in document:
            if expected is None:
                continue
            return False
        actual = document[key]
        if isinstance(actual, list) and not isinstance(expected, list):
            if expected not in actual:
                return False
        elif actual != expected:
            return False
    return True


def apply_update(document: Mapping[str, Value], update: Update) -> Document:
    """Return a new document with `update` applied to a copy of `document`."""
    out = copy_record(document)
    for key, value in update.assign.items():
        out[key] = list(value) if isinstance(value, list) else value
    for key in update.unset:
        out.pop(key, None)
    for key, value in update.add_to_set.items():
        current = _as_list(out, key)
        if value not in current:
            current.append(value)
    for key, value in update.push.items():
        _as_list(out, key).append(value)
    for key, value in update.pull.items():
        out[key] = [item for item in _as_list(out, key) if item != value]
    out[ID_FIELD] = document[ID_FIELD]
    return out


def _as_list(document: Document, key: str) -> list:
    current = document.get(key)
    if current is None:
        current = document[key] = []
    elif not isinstance(current, list):
        raise TypeError(f"field '{key}' is not a list")
    return current


def sort_by_id(documents: Iterable[Document]) -> list[Document]:
    """Return documents ordered by `_id`."""
    return sorted(documents, key=lambda doc: str(doc[ID_FIELD]))
