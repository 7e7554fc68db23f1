"""Action dispatcher.

Actions are concept methods decorated with `@action`. The method takes its
input fields as required keyword-only parameters, checks its precondition
before writing anything, raises a `DomainError` when the precondition fails,
and returns its success record (or None for an empty one).

The decorator turns such a method into a dispatcher that:

1. checks the input record has exactly the declared fields (missing or extra
   fields are a usage error), that every value is in the value universe and
   that it matches the parameter's annotation;
2. runs the method inside a store transaction, so a multi-relation effect is
   all-or-nothing and a rejected invocation leaves no trace;
3. returns the success record, or `{"error": message}` for a `DomainError`;
4. lets every other exception propagate, after rolling back.

Invocations are never retried here.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from conceptual.domain.errors import (
    ActionUsageError,
    DomainError,
    InvalidValueError,
    InvariantViolation,
)
from conceptual.domain.values import Record, conforms, normalize_record

from .operations import (
    OPERATION_ATTR,
    OperationKind,
    OperationSpec,
    field_types,
    keyword_fields,
    merge_record,
    summary_of,
)

if TYPE_CHECKING:
    from .concept import Concept

logger = logging.getLogger(__name__)

ERROR_FIELD = "error"

F = TypeVar("F", bound=Callable[..., Any])


def is_error(result: Mapping[str, Any]) -> bool:
    """Return True if an action output is an error record."""
    return ERROR_FIELD in result


def action(fn: F | None = None, *, idempotent: bool = False) -> Any:
    """Declare a concept method as an action.

    Usable bare (``@action``) or with options (``@action(idempotent=True)``).

    Args:
        idempotent: Documented guarantee that invoking the action twice with
            the same input leaves the same state as invoking it once.
    """

    def decorate(method: F) -> F:
        spec = OperationSpec(
            name=method.__name__,
            kind=OperationKind.ACTION,
            fields=keyword_fields(method),
            idempotent=idempotent,
            summary=summary_of(method),
        )

        @functools.wraps(method)
        def dispatch(
            self: Concept, record: Mapping[str, Any] | None = None, /, **fields: Any
        ) -> Record:
            return dispatch_action(
                self, spec, method, merge_record(spec.name, record, fields)
            )

        setattr(dispatch, OPERATION_ATTR, spec)
        return dispatch  # type: ignore[return-value]

    return decorate(fn) if fn is not None else decorate


def dispatch_action(
    concept: Concept,
    spec: OperationSpec,
    method: Callable[..., Any],
    record: Mapping[str, Any],
) -> Record:
    """Execute one action invocation end-to-end.

    Returns:
        The success record, or `{"error": message}` when the action raised a
        `DomainError`. In both cases state is either fully updated or untouched.

    Raises:
        ActionUsageError: If the record does not match the declared fields.
        InvalidValueError: If a value is outside the value universe or does
            not match its declared type.
        InvariantViolation: If the action returned a malformed success record.
        Exception: Any other failure raised by the action or the store.
    """
    qualname = f"{concept.name}.{spec.name}"
    provided = set(record)
    if provided != spec.fields:
        raise ActionUsageError(
            qualname, missing=spec.fields - provided, extra=provided - spec.fields
        )
    inputs = normalize_record(record, where=qualname)
    for field, annotation in field_types(method).items():
        if not conforms(inputs[field], annotation):
            raise InvalidValueError(
                f"{qualname}.{field}",
                f"expected {_type_name(annotation)}, got {type(inputs[field]).__name__}",
            )

    logger.debug("Dispatching action %s with %s", qualname, inputs)
    try:
        with concept.store.transaction():
            output = _success_record(qualname, method(concept, **inputs))
    except DomainError as e:
        logger.info("Action %s rejected: %s", qualname, e.message)
        return {ERROR_FIELD: e.message}
    except Exception:  # pylint: disable=broad-except
        logger.exception("Fatal failure in action %s with %s", qualname, inputs)
        raise
    logger.debug("Action %s committed: %s", qualname, output)
    return output


def _success_record(qualname: str, result: Any) -> Record:
    if result is None:
        return {}
    if not isinstance(result, Mapping):
        raise InvariantViolation(
            f"Action {qualname} returned {type(result).__name__}, expected a record"
        )
    if ERROR_FIELD in result:
        raise InvariantViolation(
            f"Action {qualname} returned an '{ERROR_FIELD}' field on success; "
            "raise a DomainError instead"
        )
    return normalize_record(result, where=f"{qualname} output")


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or str(annotation)
