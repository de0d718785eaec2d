from __future__ import annotations

from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from audit_trail.models.audit_log import AuditLog
from audit_trail.services.audit.synthesizer import AuditRecord


class AuditSink(Protocol):
    # True when append_all joins the unit of work that commits the entities
    transactional: bool

    def append_all(self, records: Sequence[AuditRecord]) -> None: ...


class SessionAuditSink:
    """Adds audit rows to the session, so they commit together with the entities."""

    transactional = True

    def __init__(self, session: Session | AsyncSession):
        self.session = session

    def append_all(self, records: Sequence[AuditRecord]) -> None:
        if records:
            self.session.add_all([AuditLog.from_record(record) for record in records])


class InMemoryAuditSink:
    """
    List-backed sink. Not part of the database transaction: records are
    appended after the commit succeeds (best effort after commit).
    """

    transactional = False

    def __init__(self) -> None:
        self._records: list[AuditRecord] = []

    @property
    def records(self) -> tuple[AuditRecord, ...]:
        return tuple(self._records)

    def append_all(self, records: Sequence[AuditRecord]) -> None:
        self._records.extend(records)
