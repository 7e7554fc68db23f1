"""Descriptions of the operations a concept declares."""

from __future__ import annotations

import functools
import inspect
import typing
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class OperationKind(str, Enum):
    """The two kinds of operation a concept may expose."""

    ACTION = "action"
    QUERY = "query"


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Static description of one declared operation.

    Attributes:
        name: Method name; query names start with an underscore.
        kind: Action or query.
        fields: Input field names. For actions, exactly the record fields that
            must be supplied. For queries, the fields a filter may name.
        idempotent: For actions, whether invoking twice with the same input
            leaves the same state as invoking once. Always None for queries.
        relation: For queries, the relation whose attributes the filter may
            name, if the query declares one.
        summary: First line of the operation's docstring.
    """

    name: str
    kind: OperationKind
    fields: frozenset[str]
    idempotent: bool | None = None
    relation: str | None = None
    summary: str = ""


OPERATION_ATTR = "__operation__"


def get_operation(obj: Any) -> OperationSpec | None:
    """Return the `OperationSpec` attached to a decorated method, if any."""
    return getattr(obj, OPERATION_ATTR, None)


def summary_of(fn: Callable[..., Any]) -> str:
    """Return the first line of `fn`'s docstring, or an empty string."""
    doc = inspect.getdoc(fn) or ""
    return doc.splitlines()[0] if doc else ""


def keyword_fields(fn: Callable[..., Any]) -> frozenset[str]:
    """Return the keyword-only parameter names of a method.

    Raises:
        TypeError: If the method takes anything but `self` and required
            keyword-only parameters.
    """
    params = list(inspect.signature(fn).parameters.values())[1:]  # drop self
    fields = set()
    for param in params:
        if param.kind is not inspect.Parameter.KEYWORD_ONLY:
            raise TypeError(
                f"{fn.__qualname__}: parameter '{param.name}' must be keyword-only"
            )
        if param.default is not inspect.Parameter.empty:
            raise TypeError(
                f"{fn.__qualname__}: parameter '{param.name}' must not have a default"
            )
        fields.add(param.name)
    return frozenset(fields)


def merge_record(
    operation: str, record: Mapping[str, Any] | None, fields: Mapping[str, Any]
) -> dict[str, Any]:
    """Combine a positional record and keyword fields into one input record."""
    merged = dict(record or {})
    if overlap := set(merged) & set(fields):
        raise TypeError(f"{operation}: fields {sorted(overlap)} given twice")
    merged.update(fields)
    return merged


@functools.cache
def field_types(fn: Callable[..., Any]) -> Mapping[str, Any]:
    """Return the resolved annotations of a method's keyword-only parameters.

    Unannotated parameters are left out. Resolved once per method.

    Raises:
        NameError: If an annotation names something that does not exist.
    """
    hints = typing.get_type_hints(fn)
    return {name: hints[name] for name in keyword_fields(fn) if name in hints}
