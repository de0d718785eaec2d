from __future__ import annotations

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from audit_trail.services.audit.changes import OperationKind, PendingChange
from audit_trail.services.audit.errors import IdentifierResolutionError


def _read_assigned_identifier(change: PendingChange) -> Any:
    """Key of a created instance; only populated after the write has run."""
    if change.handle is None:
        raise IdentifierResolutionError(
            change.entity_type_name, "create", "no instance handle retained"
        )
    try:
        identity = inspect(change.handle).identity
    except NoInspectionAvailable as exc:
        raise IdentifierResolutionError(
            change.entity_type_name, "create", "handle is not a mapped instance"
        ) from exc
    if not identity:
        return None
    return identity[0]


def resolve_identifier(change: PendingChange) -> int:
    """
    Entity id for the audit trail of ``change``.

    Deletes read the prior snapshot, updates the current one, creates read the
    instance handle after the write. Anything that is not a plain int fails.
    """
    kind = change.operation_kind
    label = kind.value if isinstance(kind, OperationKind) else str(kind)

    if change.identifier_field is None:
        raise IdentifierResolutionError(
            change.entity_type_name, label, "entity has no single-column primary key"
        )

    if kind is OperationKind.CREATE:
        value = _read_assigned_identifier(change)
    elif kind is OperationKind.DELETE:
        value = change.prior_values.get(change.identifier_field)
    elif kind is OperationKind.UPDATE:
        value = change.current_values.get(change.identifier_field)
    else:
        value = change.current_values.get(change.identifier_field)
        if value is None:
            value = change.prior_values.get(change.identifier_field)

    if value is None:
        raise IdentifierResolutionError(change.entity_type_name, label, "identifier is missing")
    # bool is an int subclass but never a valid key
    if isinstance(value, bool) or not isinstance(value, int):
        raise IdentifierResolutionError(
            change.entity_type_name,
            label,
            f"identifier {value!r} is not an integer",
        )
    return value
