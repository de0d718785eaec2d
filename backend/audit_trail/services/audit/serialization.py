from __future__ import annotations

from typing import Any

from pydantic_core import from_json, to_json

from audit_trail.services.audit.errors import AuditSerializationError


def serialize_value(value: Any) -> str:
    """
    JSON text for a field value. None becomes the JSON literal ``null``,
    so it reads back as None rather than the string "null".
    """
    try:
        return to_json(value).decode("utf-8")
    except ValueError as exc:  # PydanticSerializationError, circular references
        raise AuditSerializationError(
            f"cannot serialize value of type {type(value).__name__}"
        ) from exc


def deserialize_value(text: str | None) -> Any:
    if text is None:
        return None
    return from_json(text)
