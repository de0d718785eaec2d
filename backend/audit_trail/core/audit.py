from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from audit_trail.core.config import settings
from audit_trail.db.session import get_db
from audit_trail.services.audit.engines import AsyncSessionEngine, SessionEngine
from audit_trail.services.audit.recorder import AuditRecorder
from audit_trail.services.audit.sinks import SessionAuditSink


def recorder_for_session(db: Session) -> AuditRecorder:
    """Recorder whose audit rows commit in the same transaction as ``db``'s writes."""
    return AuditRecorder(
        SessionEngine(db, settings.AUDIT_EXCLUDED_ENTITIES),
        SessionAuditSink(db),
        enabled=settings.AUDIT_ENABLED,
    )


def recorder_for_async_session(db: AsyncSession) -> AuditRecorder:
    return AuditRecorder(
        AsyncSessionEngine(db, settings.AUDIT_EXCLUDED_ENTITIES),
        SessionAuditSink(db),
        enabled=settings.AUDIT_ENABLED,
    )


def get_audit_recorder(db: Session = Depends(get_db)) -> AuditRecorder:
    return recorder_for_session(db)
