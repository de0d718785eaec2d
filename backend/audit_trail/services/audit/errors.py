from __future__ import annotations


class AuditError(Exception):
    """Base class for failures while synthesizing an audit trail."""


class IdentifierResolutionError(AuditError):
    def __init__(self, entity_type_name: str, operation: str, reason: str):
        self.entity_type_name = entity_type_name
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"cannot resolve identifier for {operation} {entity_type_name}: {reason}"
        )


class AuditSerializationError(AuditError):
    def __init__(self, message: str, *, entity_type_name: str | None = None, field_name: str | None = None):
        self.entity_type_name = entity_type_name
        self.field_name = field_name
        if entity_type_name and field_name:
            message = f"{entity_type_name}.{field_name}: {message}"
        super().__init__(message)
