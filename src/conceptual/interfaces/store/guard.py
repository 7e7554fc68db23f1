"""Read-only guard honoured by every collection adapter.

While a query executes, the running context is marked read-only and every
collection write raises `ReadOnlyViolation`, whichever handle it goes
through.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from conceptual.domain.errors import ReadOnlyViolation

_read_only: ContextVar[bool] = ContextVar("conceptual_read_only", default=False)


@contextmanager
def read_only() -> Iterator[None]:
    """Refuse every collection write performed inside the block."""
    token = _read_only.set(True)
    try:
        yield
    finally:
        _read_only.reset(token)


def is_read_only() -> bool:
    """Return True while executing inside `read_only()`."""
    return _read_only.get()


def ensure_writable(namespace: str, operation: str) -> None:
    """Raise `ReadOnlyViolation` if writes are currently refused."""
    if _read_only.get():
        raise ReadOnlyViolation(namespace, operation)
