"""The value universe for records and stored attributes.

Records exchanged with actions and queries, and attributes stored in a
relation, are restricted to:

- primitives: `str`, `int`, `float`, `bool`, `None`
- identifiers (`ID`, a `str` at runtime)
- flat collections of the above (`list`, `tuple`, `set`, `frozenset`)

Collections are normalized to lists before they are stored or returned.
"""

from __future__ import annotations

import types
import typing
from collections.abc import Mapping
from typing import Any, TypeAlias, Union

from .errors import InvalidValueError, SchemaError

Primitive: TypeAlias = str | int | float | bool | None
Value: TypeAlias = Primitive | list[Primitive]
Record: TypeAlias = dict[str, Value]

PRIMITIVE_TYPES: tuple[type, ...] = (str, int, float, bool, type(None))
COLLECTION_TYPES: tuple[type, ...] = (list, tuple, set, frozenset)

_COLLECTION_ORIGINS = (list, tuple, set, frozenset)


# --- runtime values ---


def is_primitive(value: object) -> bool:
    """Return True if `value` is a primitive (or identifier) value."""
    return isinstance(value, PRIMITIVE_TYPES)


def normalize_value(value: object, *, where: str) -> Value:
    """Check `value` against the value universe and return its stored form.

    Raises:
        InvalidValueError: If `value` is a richer object or a nested collection.
    """
    if is_primitive(value):
        return value  # type: ignore[return-value]
    if isinstance(value, COLLECTION_TYPES):
        items: list[Primitive] = []
        for item in value:  # type: ignore[attr-defined]
            if not is_primitive(item):
                raise InvalidValueError(
                    where,
                    f"collections may only hold primitives or identifiers, "
                    f"got {type(item).__name__}",
                )
            items.append(item)
        return items
    raise InvalidValueError(where, f"unsupported type {type(value).__name__}")


def normalize_record(record: Mapping[str, object], *, where: str) -> Record:
    """Return a copy of `record` with every value checked and normalized."""
    if not isinstance(record, Mapping):
        raise InvalidValueError(where, f"expected a record, got {type(record).__name__}")
    out: Record = {}
    for key, value in record.items():
        if not isinstance(key, str):
            raise InvalidValueError(where, f"field names must be str, got {key!r}")
        out[key] = normalize_value(value, where=f"{where}.{key}")
    return out


def copy_record(record: Mapping[str, Value]) -> Record:
    """Shallow-copy a stored record, copying list values as well."""
    return {k: list(v) if isinstance(v, list) else v for k, v in record.items()}


# --- declared types ---


def _unwrap_newtype(tp: Any) -> Any:
    while hasattr(tp, "__supertype__"):
        tp = tp.__supertype__
    return tp


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (Union, types.UnionType)


def _check_scalar_annotation(tp: Any, where: str) -> None:
    tp = _unwrap_newtype(tp)
    if tp is None or tp is type(None):
        return
    if _is_union(tp):
        for arg in typing.get_args(tp):
            _check_scalar_annotation(arg, where)
        return
    if tp in PRIMITIVE_TYPES:
        return
    raise SchemaError(where, f"{tp!r} is not a primitive or identifier type")


def check_annotation(tp: Any, *, where: str) -> None:
    """Check a declared attribute type against the value universe.

    Raises:
        SchemaError: If the annotation admits richer objects or nested collections.
    """
    tp = _unwrap_newtype(tp)
    if _is_union(tp):
        for arg in typing.get_args(tp):
            check_annotation(arg, where=where)
        return
    origin = typing.get_origin(tp)
    if origin in _COLLECTION_ORIGINS:
        args = [a for a in typing.get_args(tp) if a is not Ellipsis]
        if not args:
            raise SchemaError(where, "collections must declare their element type")
        for arg in args:
            _check_scalar_annotation(arg, where)
        return
    if tp in _COLLECTION_ORIGINS:
        raise SchemaError(where, "collections must declare their element type")
    _check_scalar_annotation(tp, where)


def conforms(value: Value, tp: Any) -> bool:
    """Return True if a normalized value matches a declared annotation.

    Identifiers match their underlying `str`; `bool` is not an `int`; an
    `int` is accepted where a `float` is declared. Collections must already
    be normalized to lists.
    """
    tp = _unwrap_newtype(tp)
    if tp is Any:
        return True
    if tp is None or tp is type(None):
        return value is None
    if _is_union(tp):
        return any(conforms(value, arg) for arg in typing.get_args(tp))
    origin = typing.get_origin(tp)
    if origin in _COLLECTION_ORIGINS or tp in _COLLECTION_ORIGINS:
        if not isinstance(value, list):
            return False
        args = [a for a in typing.get_args(tp) if a is not Ellipsis]
        return not args or all(
            any(conforms(item, a) for a in args) for item in value
        )
    if isinstance(value, bool):
        return tp is bool
    if tp is float:
        return isinstance(value, (int, float))
    return isinstance(tp, type) and isinstance(value, tp)
