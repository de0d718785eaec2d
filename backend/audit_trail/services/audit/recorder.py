"""
Save coordinator that leaves an audit trail behind every write.

One attempt walks::

    COLLECTING -> PRE_COMMIT_SYNTHESIS -> COMMITTING
        -> POST_COMMIT_SYNTHESIS -> APPENDED

and ends in ABORTED instead when any step fails. Updates and deletes are
synthesized before the write, while their prior values are still tracked.
Creates are synthesized after it, once the database has assigned their keys.
The write itself runs exactly once per attempt.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from datetime import datetime
from typing import Callable

from audit_trail.services.audit.changes import PendingChange, partition_changes
from audit_trail.services.audit.engines import AsyncSessionEngine, SessionEngine
from audit_trail.services.audit.sinks import AuditSink
from audit_trail.services.audit.synthesizer import AuditRecord, synthesize, utc_now

logger = logging.getLogger(__name__)


class AuditState(str, enum.Enum):
    COLLECTING = "collecting"
    PRE_COMMIT_SYNTHESIS = "pre_commit_synthesis"
    COMMITTING = "committing"
    POST_COMMIT_SYNTHESIS = "post_commit_synthesis"
    APPENDED = "appended"
    ABORTED = "aborted"


class AuditRecorder:
    def __init__(
        self,
        engine: SessionEngine | AsyncSessionEngine,
        sink: AuditSink,
        *,
        clock: Callable[[], datetime] = utc_now,
        enabled: bool = True,
    ):
        self.engine = engine
        self.sink = sink
        self.clock = clock
        self.enabled = enabled
        # state reached by the most recent attempt
        self.state: AuditState | None = None

    def _transition(self, state: AuditState) -> None:
        logger.debug("audit_state from=%s to=%s", self.state, state)
        self.state = state

    def _abort(self, stage: AuditState) -> None:
        self.state = AuditState.ABORTED
        logger.warning("audit_aborted stage=%s", stage.value, exc_info=True)

    def _synthesize_all(self, changes: list[PendingChange]) -> list[AuditRecord]:
        timestamp = self.clock()
        records: list[AuditRecord] = []
        for change in changes:
            records.extend(synthesize(change, timestamp=timestamp))
        return records

    def _prepare(self) -> tuple[list[AuditRecord], list[PendingChange]]:
        self._transition(AuditState.COLLECTING)
        try:
            known, pending = partition_changes(self.engine.pending_changes())
            self._transition(AuditState.PRE_COMMIT_SYNTHESIS)
            records = self._synthesize_all(known)
        except Exception:
            # nothing has been written yet; the session is left as it was
            self._abort(self.state)
            raise
        return records, pending

    def _finish_synthesis(
        self, pre_records: list[AuditRecord], pending: list[PendingChange]
    ) -> list[AuditRecord]:
        self._transition(AuditState.POST_COMMIT_SYNTHESIS)
        return pre_records + self._synthesize_all(pending)

    def _log_appended(self, rows: int, records: list[AuditRecord]) -> None:
        self._transition(AuditState.APPENDED)
        logger.info(
            "audit_appended rows=%s records=%s transactional=%s",
            rows,
            len(records),
            self.sink.transactional,
        )

    def save(self) -> int:
        """Write pending changes and their audit trail; returns affected entity rows."""
        if not self.enabled:
            try:
                rows = self.engine.write()
                self.engine.complete()
            except Exception:
                self.engine.abort()
                raise
            return rows

        pre_records, pending = self._prepare()

        self._transition(AuditState.COMMITTING)
        try:
            rows = self.engine.write()
        except Exception:
            self._abort(AuditState.COMMITTING)
            self.engine.abort()
            raise

        stage = AuditState.POST_COMMIT_SYNTHESIS
        try:
            records = self._finish_synthesis(pre_records, pending)
            if self.sink.transactional:
                self.sink.append_all(records)
            stage = AuditState.COMMITTING
            self.engine.complete()
        except Exception:
            self._abort(stage)
            self.engine.abort()
            raise

        if not self.sink.transactional:
            self.sink.append_all(records)
        self._log_appended(rows, records)
        return rows

    async def save_async(self) -> int:
        """Cooperative variant of :meth:`save`; the engine's I/O is awaited."""
        if not self.enabled:
            try:
                rows = await self.engine.write()
                await self.engine.complete()
            except Exception:
                await self.engine.abort()
                raise
            return rows

        pre_records, pending = self._prepare()

        # last point where cancellation discards everything without side effects
        try:
            await asyncio.sleep(0)
        except asyncio.CancelledError:
            self.state = AuditState.ABORTED
            logger.info("audit_cancelled discarded_records=%s", len(pre_records))
            raise

        self._transition(AuditState.COMMITTING)
        try:
            rows = await self.engine.write()
        except Exception:
            self._abort(AuditState.COMMITTING)
            await self.engine.abort()
            raise

        stage = AuditState.POST_COMMIT_SYNTHESIS
        try:
            records = self._finish_synthesis(pre_records, pending)
            if self.sink.transactional:
                self.sink.append_all(records)
            stage = AuditState.COMMITTING
            await self.engine.complete()
        except Exception:
            self._abort(stage)
            await self.engine.abort()
            raise

        if not self.sink.transactional:
            self.sink.append_all(records)
        self._log_appended(rows, records)
        return rows
