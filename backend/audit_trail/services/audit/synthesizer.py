from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from audit_trail.services.audit.changes import OperationKind, PendingChange
from audit_trail.services.audit.errors import AuditSerializationError
from audit_trail.services.audit.identifiers import resolve_identifier
from audit_trail.services.audit.serialization import serialize_value

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Unknown"

_LABELS = {
    OperationKind.CREATE: "Created",
    OperationKind.UPDATE: "Updated",
    OperationKind.DELETE: "Deleted",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuditRecord:
    timestamp: datetime
    entity_type_name: str
    entity_id: int
    operation_kind: str
    field_name: str | None = None
    old_value: str | None = None
    new_value: str | None = None


def operation_label(kind: Any) -> str:
    """Unrecognized states are labelled "Unknown" instead of rejected."""
    try:
        return _LABELS.get(kind, UNKNOWN_LABEL)
    except TypeError:  # unhashable
        return UNKNOWN_LABEL


def _serialize(change: PendingChange, field_name: str, value: Any) -> str:
    try:
        return serialize_value(value)
    except AuditSerializationError as exc:
        raise AuditSerializationError(
            str(exc), entity_type_name=change.entity_type_name, field_name=field_name
        ) from exc


def synthesize(
    change: PendingChange,
    operation_kind: Any = None,
    *,
    timestamp: datetime | None = None,
) -> list[AuditRecord]:
    """
    Audit records for one pending change.

    Updates give one record per modified field (none for a no-op update).
    Every other kind gives a single whole-entity record with no field data.
    """
    if operation_kind is None:
        operation_kind = change.operation_kind
    if not isinstance(operation_kind, OperationKind):
        try:
            operation_kind = OperationKind(operation_kind)
        except ValueError:
            pass
    label = operation_label(operation_kind)
    timestamp = timestamp or utc_now()

    if operation_kind is OperationKind.UPDATE:
        if not change.modified_field_names:
            return []
        entity_id = resolve_identifier(change)
        return [
            AuditRecord(
                timestamp=timestamp,
                entity_type_name=change.entity_type_name,
                entity_id=entity_id,
                operation_kind=label,
                field_name=name,
                old_value=_serialize(change, name, change.prior_values.get(name)),
                new_value=_serialize(change, name, change.current_values.get(name)),
            )
            for name in change.modified_field_names
        ]

    if label == UNKNOWN_LABEL:
        logger.warning(
            "audit_unknown_state entity=%s state=%r",
            change.entity_type_name,
            operation_kind,
        )

    return [
        AuditRecord(
            timestamp=timestamp,
            entity_type_name=change.entity_type_name,
            entity_id=resolve_identifier(change),
            operation_kind=label,
        )
    ]
