"""Opaque entity identifiers.

An `ID` is a `str` at runtime but a distinct type for checkers, so a plain
string cannot be passed where an identifier is expected without going through
either the identifier generator or the explicit `unchecked_id` conversion.
"""

from typing import NewType

ID = NewType("ID", str)


def unchecked_id(value: str) -> ID:
    """Brand an arbitrary string as an `ID` without allocating it.

    Intended for test fixtures and for identifiers received from outside the
    process (e.g. a synchronizer passing another concept's entity reference).
    The value is not checked for uniqueness.

    Raises:
        TypeError: If `value` is not a string.
        ValueError: If `value` is empty.
    """
    if not isinstance(value, str):
        raise TypeError(f"identifier must be a str, got {type(value).__name__}")
    if not value:
        raise ValueError("identifier must not be empty")
    return ID(value)
