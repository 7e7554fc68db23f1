"""Concept runtime: state binder, action dispatcher and query executor.

Concept modules import everything they need from here and from
`conceptual.domain`; they never import each other.
"""

from .actions import ERROR_FIELD, action, is_error
from .binder import BoundRelation, Relation
from .concept import Concept, ConceptSpec
from .identifiers import fresh_id
from .operations import OperationKind, OperationSpec
from .queries import query

__all__ = [
    "Concept",
    "ConceptSpec",
    "Relation",
    "BoundRelation",
    "action",
    "query",
    "is_error",
    "ERROR_FIELD",
    "fresh_id",
    "OperationKind",
    "OperationSpec",
]
