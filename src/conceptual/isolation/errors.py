"""Exceptions raised by the isolation checker."""

from __future__ import annotations

from typing import TYPE_CHECKING

from conceptual.domain.errors import FatalError

if TYPE_CHECKING:
    from .checker import Violation


class IsolationError(FatalError):
    """Raised when concept units reference each other.

    Attributes:
        violations (list[Violation]): Every violation found, in report order.
    """

    def __init__(self, violations: list[Violation]) -> None:
        lines = "\n".join(f"  {v}" for v in violations)
        super().__init__(
            f"{len(violations)} isolation violation(s) found:\n{lines}"
        )
        self.violations = violations


class NotAConceptPackageError(ValueError):
    """Raised when the checked path is not a Python package directory."""

    def __init__(self, path: str) -> None:
        super().__init__(f"'{path}' is not a package directory (no __init__.py).")
        self.path = path
