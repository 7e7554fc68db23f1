"""Exceptions raised by document store adapters.

All store errors are fatal from the point of view of an action: they describe
infrastructure failures or violated invariants, never domain outcomes.
"""

from conceptual.domain.errors import FatalError


class StoreError(FatalError):
    """Base class for document store errors."""


class StoreUnavailableError(StoreError):
    """Raised when the underlying store cannot be reached or fails mid-operation."""


class DuplicateIdError(StoreError):
    """Raised when inserting a document whose `_id` is already present.

    Attributes:
        namespace (str): The collection the insert targeted.
        doc_id (str): The conflicting identifier.
    """

    def __init__(self, namespace: str, doc_id: str) -> None:
        super().__init__(f"Document '{doc_id}' already exists in '{namespace}'.")
        self.namespace = namespace
        self.doc_id = doc_id


class InvalidNamespaceError(StoreError):
    """Raised when a collection namespace is not of the form `Concept.relation`."""

    def __init__(self, namespace: str) -> None:
        super().__init__(
            f"Invalid namespace '{namespace}': expected '<ConceptName>.<relationName>'."
        )
        self.namespace = namespace


class ConcurrentUpdateError(StoreError):
    """Raised when a document could not be updated after repeated lost races."""

    def __init__(self, namespace: str, doc_id: str, attempts: int) -> None:
        super().__init__(
            f"Document '{doc_id}' in '{namespace}' changed concurrently "
            f"{attempts} times; giving up."
        )
        self.namespace = namespace
        self.doc_id = doc_id
        self.attempts = attempts
