"""
Snapshots of a session's pending writes.

The collector reads SQLAlchemy's unit-of-work state exactly once per save
attempt and turns every tracked instance into a frozen ``PendingChange``.
Everything downstream works on those snapshots, never on the live session.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class OperationKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class PendingChange:
    entity_type_name: str
    operation_kind: OperationKind
    # name of the single primary key attribute; None for composite keys
    identifier_field: str | None
    prior_values: Mapping[str, Any] = field(default_factory=dict)
    current_values: Mapping[str, Any] = field(default_factory=dict)
    modified_field_names: tuple[str, ...] = ()
    # the in-flight instance, read again once the write has assigned its key
    handle: Any = field(default=None, compare=False, repr=False)


def is_excluded(instance: Any, excluded: Iterable[str] = ()) -> bool:
    cls = type(instance)
    return bool(getattr(cls, "__audit_exclude__", False)) or cls.__name__ in set(excluded)


def _keep_prior_value(target, value, oldvalue, initiator):
    return value


def track_prior_values(base: type) -> None:
    """
    Column attributes of every audited model mapped under ``base`` load their
    stored value when assigned while expired (after a commit with
    ``expire_on_commit``), so an update always knows what it replaced.
    """

    @event.listens_for(base, "mapper_configured", propagate=True)
    def _enable_active_history(mapper, class_):
        if getattr(class_, "__audit_exclude__", False):
            return
        for attr in mapper.column_attrs:
            event.listen(getattr(class_, attr.key), "set", _keep_prior_value, active_history=True)


def _first(values) -> Any:
    return values[0] if values else None


def snapshot_instance(instance: Any, operation_kind: OperationKind) -> PendingChange:
    state = inspect(instance)
    mapper = state.mapper

    pk_keys = [mapper.get_property_by_column(col).key for col in mapper.primary_key]
    identifier_field = pk_keys[0] if len(pk_keys) == 1 else None

    prior: dict[str, Any] = {}
    current: dict[str, Any] = {}
    modified: list[str] = []

    # column_attrs follows the mapped table's column order
    for attr in mapper.column_attrs:
        key = attr.key
        history = state.attrs[key].history
        before = _first(history.deleted) if history.deleted else _first(history.unchanged)
        after = _first(history.added) if history.added else _first(history.unchanged)

        if operation_kind is not OperationKind.CREATE:
            prior[key] = before
        if operation_kind is not OperationKind.DELETE:
            current[key] = after
        if operation_kind is OperationKind.UPDATE and history.has_changes():
            modified.append(key)

    # expired primary key attributes have no history; the identity key still has the value
    if identifier_field is not None and state.identity is not None:
        if operation_kind is not OperationKind.CREATE and prior.get(identifier_field) is None:
            prior[identifier_field] = state.identity[0]
        if operation_kind is not OperationKind.DELETE and current.get(identifier_field) is None:
            current[identifier_field] = state.identity[0]

    return PendingChange(
        entity_type_name=type(instance).__name__,
        operation_kind=operation_kind,
        identifier_field=identifier_field,
        prior_values=prior,
        current_values=current,
        modified_field_names=tuple(modified),
        handle=instance,
    )


def collect_changes(session: Session, excluded: Iterable[str] = ()) -> list[PendingChange]:
    """Classify every tracked instance of ``session`` as an update, delete or create."""
    excluded = frozenset(excluded)
    changes: list[PendingChange] = []

    for instance in session.dirty:
        if is_excluded(instance, excluded):
            continue
        changes.append(snapshot_instance(instance, OperationKind.UPDATE))

    for instance in session.deleted:
        if is_excluded(instance, excluded):
            continue
        changes.append(snapshot_instance(instance, OperationKind.DELETE))

    for instance in session.new:
        if is_excluded(instance, excluded):
            continue
        changes.append(snapshot_instance(instance, OperationKind.CREATE))

    logger.debug("audit_collect changes=%s excluded=%s", len(changes), sorted(excluded))
    return changes


def partition_changes(
    changes: Iterable[PendingChange],
) -> tuple[list[PendingChange], list[PendingChange]]:
    """
    Split into (identifier-known, identifier-pending).
    Creates have no key until the write runs; everything else already does.
    """
    known: list[PendingChange] = []
    pending: list[PendingChange] = []
    for change in changes:
        if change.operation_kind is OperationKind.CREATE:
            pending.append(change)
        else:
            known.append(change)
    return known, pending
