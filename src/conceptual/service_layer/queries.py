"""Query executor.

Queries are concept methods whose name starts with an underscore, decorated
with `@query`. The method receives the filter record as its only argument and
returns an iterable of projection records::

    @query(over="labels")
    def _labels(self, where):
        return self.labels.find(where)

The executor checks the filter against the fields the query accepts (the
attributes of its `over` relation, or its explicit `fields`), runs the method
with every collection write refused, and returns the projections as a fresh
list. An empty list is a normal result, never an error.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from conceptual.domain.errors import InvariantViolation, QueryUsageError
from conceptual.domain.values import Record, normalize_record
from conceptual.interfaces.store import read_only

from .operations import (
    OPERATION_ATTR,
    OperationKind,
    OperationSpec,
    merge_record,
    summary_of,
)

if TYPE_CHECKING:
    from .concept import Concept

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def query(
    fn: F | None = None,
    *,
    over: str | None = None,
    fields: tuple[str, ...] = (),
) -> Any:
    """Declare a concept method as a read-only query.

    Usable bare (``@query``, accepting only the empty filter) or with options.

    Args:
        over: Name of the relation the query projects; the filter may name
            any of its attributes, `_id` included.
        fields: Extra filter fields the query understands.
    """

    def decorate(method: F) -> F:
        spec = OperationSpec(
            name=method.__name__,
            kind=OperationKind.QUERY,
            fields=frozenset(fields),
            relation=over,
            summary=summary_of(method),
        )

        @functools.wraps(method)
        def execute(
            self: Concept, where: Mapping[str, Any] | None = None, /, **criteria: Any
        ) -> list[Record]:
            return execute_query(
                self, spec, method, merge_record(spec.name, where, criteria)
            )

        setattr(execute, OPERATION_ATTR, spec)
        return execute  # type: ignore[return-value]

    return decorate(fn) if fn is not None else decorate


def accepted_fields(concept: Concept, spec: OperationSpec) -> frozenset[str]:
    """Return the filter fields `spec` accepts on `concept`."""
    accepted = set(spec.fields)
    if spec.relation is not None:
        accepted |= concept.bindings[spec.relation].attributes
    return frozenset(accepted)


def execute_query(
    concept: Concept,
    spec: OperationSpec,
    method: Callable[..., Any],
    where: Mapping[str, Any],
) -> list[Record]:
    """Execute one query invocation.

    Raises:
        QueryUsageError: If the filter names a field the query does not accept.
        ReadOnlyViolation: If the query attempts to write any collection.
        InvariantViolation: If the query yields something other than records.
    """
    qualname = f"{concept.name}.{spec.name}"
    if unknown := set(where) - accepted_fields(concept, spec):
        raise QueryUsageError(qualname, unknown)
    criteria = normalize_record(where, where=qualname)

    logger.debug("Executing query %s with %s", qualname, criteria)
    try:
        with read_only():
            results = [
                _projection(qualname, item) for item in method(concept, criteria)
            ]
    except Exception:  # pylint: disable=broad-except
        logger.exception("Fatal failure in query %s with %s", qualname, criteria)
        raise
    logger.debug("Query %s returned %d record(s)", qualname, len(results))
    return results


def _projection(qualname: str, item: Any) -> Record:
    if not isinstance(item, Mapping):
        raise InvariantViolation(
            f"Query {qualname} yielded {type(item).__name__}, expected a record"
        )
    return normalize_record(item, where=f"{qualname} output")
