"""Domain-layer error definitions.

Errors come in two tiers:

- `DomainError` and subclasses describe expected failures (a violated
  precondition, a missing entity, a conflicting state). Actions raise them and
  the dispatcher turns them into `{"error": message}` records.
- `FatalError` and subclasses describe defects and violated invariants. They
  are never normalized into records and always propagate to the caller.
"""

# ============================================================================
#                           Domain (value-level) errors
# ============================================================================


class DomainError(Exception):
    """Base class for expected failures surfaced as error records."""

    @property
    def message(self) -> str:
        """The human-readable description placed in the error record."""
        return str(self)


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, key: str | None = None) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.key = key


class ConflictError(DomainError):
    """Raised when the requested change conflicts with existing state."""


class PreconditionError(DomainError):
    """Raised when an action's documented precondition does not hold."""


# ============================================================================
#                           Fatal (signal-level) errors
# ============================================================================


class FatalError(Exception):
    """Base class for failures that terminate an invocation."""


class InvariantViolation(FatalError):
    """Raised when an internal invariant of the runtime is violated."""


class ReadOnlyViolation(InvariantViolation):
    """Raised when a query attempts to write to a relation."""

    def __init__(self, namespace: str, operation: str) -> None:
        super().__init__(
            f"Attempted {operation} on '{namespace}' while executing a query."
        )
        self.namespace = namespace
        self.operation = operation


class SchemaError(FatalError):
    """Raised when a declared relation schema falls outside the value universe."""

    def __init__(self, where: str, reason: str) -> None:
        super().__init__(f"Invalid schema for {where}: {reason}")
        self.where = where
        self.reason = reason


class InvalidValueError(FatalError):
    """Raised when a record carries a value outside the value universe."""

    def __init__(self, where: str, reason: str) -> None:
        super().__init__(f"Invalid value for {where}: {reason}")
        self.where = where
        self.reason = reason


class ActionUsageError(FatalError, TypeError):
    """Raised when an action is invoked with a record of the wrong shape."""

    def __init__(
        self, action: str, missing: set[str] | None = None, extra: set[str] | None = None
    ) -> None:
        self.action = action
        self.missing = sorted(missing or ())
        self.extra = sorted(extra or ())
        details = []
        if self.missing:
            details.append(f"missing fields {self.missing}")
        if self.extra:
            details.append(f"unexpected fields {self.extra}")
        super().__init__(f"Action '{action}' called with {' and '.join(details)}")


class QueryUsageError(FatalError, TypeError):
    """Raised when a query filter names fields the query cannot filter on."""

    def __init__(self, query: str, unknown: set[str]) -> None:
        self.query = query
        self.unknown = sorted(unknown)
        super().__init__(f"Query '{query}' cannot filter on {self.unknown}")


class UnknownOperationError(FatalError, LookupError):
    """Raised when an operation name is not part of a concept's declared surface."""

    def __init__(self, concept: str, operation: str) -> None:
        super().__init__(f"Concept '{concept}' declares no operation '{operation}'")
        self.concept = concept
        self.operation = operation


class ConceptDefinitionError(FatalError):
    """Raised when a concept class violates the declaration rules."""

    def __init__(self, concept: str, reason: str) -> None:
        super().__init__(f"Invalid concept '{concept}': {reason}")
        self.concept = concept
        self.reason = reason
