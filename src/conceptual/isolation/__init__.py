"""Static verification that concept modules do not depend on each other."""

from .checker import (
    ViolationKind,
    Violation,
    assert_isolated,
    check_isolation,
    discover_units,
)
from .errors import IsolationError, NotAConceptPackageError

__all__ = [
    "IsolationError",
    "NotAConceptPackageError",
    "Violation",
    "ViolationKind",
    "assert_isolated",
    "check_isolation",
    "discover_units",
]
