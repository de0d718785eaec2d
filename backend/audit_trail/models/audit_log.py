from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from audit_trail.db.base import Base
from audit_trail.services.audit.synthesizer import AuditRecord


class AuditLog(Base):
    """Append-only row for one synthesized audit record."""

    __tablename__ = "audit_logs"
    # audit rows are never audited themselves
    __audit_exclude__ = True

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(128), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    operation: Mapped[str] = mapped_column(String(16), nullable=False)  # Created/Updated/Deleted/Unknown
    field_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditLog":
        return cls(
            created_at=record.timestamp,
            entity_type=record.entity_type_name,
            entity_id=record.entity_id,
            operation=record.operation_kind,
            field_name=record.field_name,
            old_value=record.old_value,
            new_value=record.new_value,
        )

    def to_record(self) -> AuditRecord:
        return AuditRecord(
            timestamp=self.created_at,
            entity_type_name=self.entity_type,
            entity_id=self.entity_id,
            operation_kind=self.operation,
            field_name=self.field_name,
            old_value=self.old_value,
            new_value=self.new_value,
        )
