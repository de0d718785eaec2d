"""
Adapters between the recorder and a SQLAlchemy unit of work.

``write`` is the single underlying write of a save attempt: a flush that runs
the INSERT/UPDATE/DELETE statements and assigns autoincrement keys inside the
open transaction. ``complete`` commits that transaction, ``abort`` rolls it
back.
"""
from __future__ import annotations

from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from audit_trail.services.audit.changes import PendingChange, collect_changes


def count_affected_rows(session: Session) -> int:
    modified = sum(1 for instance in session.dirty if session.is_modified(instance))
    return len(session.new) + len(session.deleted) + modified


class SessionEngine:
    def __init__(self, session: Session, excluded_entities: Iterable[str] = ()):
        self.session = session
        self.excluded_entities = tuple(excluded_entities)

    def pending_changes(self) -> list[PendingChange]:
        return collect_changes(self.session, self.excluded_entities)

    def write(self) -> int:
        rows = count_affected_rows(self.session)
        self.session.flush()
        return rows

    def complete(self) -> None:
        self.session.commit()

    def abort(self) -> None:
        self.session.rollback()


class AsyncSessionEngine:
    def __init__(self, session: AsyncSession, excluded_entities: Iterable[str] = ()):
        self.session = session
        self.excluded_entities = tuple(excluded_entities)

    def pending_changes(self) -> list[PendingChange]:
        # unit-of-work bookkeeping lives on the wrapped sync session and needs no I/O
        return collect_changes(self.session.sync_session, self.excluded_entities)

    async def write(self) -> int:
        rows = count_affected_rows(self.session.sync_session)
        await self.session.flush()
        return rows

    async def complete(self) -> None:
        await self.session.commit()

    async def abort(self) -> None:
        await self.session.rollback()
