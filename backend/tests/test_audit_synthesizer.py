from datetime import datetime, timezone
from decimal import Decimal

import pytest

from audit_trail.services.audit.changes import OperationKind, PendingChange
from audit_trail.services.audit.errors import AuditSerializationError, IdentifierResolutionError
from audit_trail.services.audit.identifiers import resolve_identifier
from audit_trail.services.audit.serialization import deserialize_value, serialize_value
from audit_trail.services.audit.synthesizer import operation_label, synthesize

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _update(prior: dict, current: dict, modified: tuple) -> PendingChange:
    return PendingChange(
        entity_type_name="TestEntity",
        operation_kind=OperationKind.UPDATE,
        identifier_field="Id",
        prior_values=prior,
        current_values=current,
        modified_field_names=modified,
    )


def test_update_single_field_scenario():
    change = _update({"Id": 1, "Name": "A"}, {"Id": 1, "Name": "B"}, ("Name",))

    records = synthesize(change, timestamp=NOW)

    assert len(records) == 1
    record = records[0]
    assert record.entity_id == 1
    assert record.entity_type_name == "TestEntity"
    assert record.operation_kind == "Updated"
    assert record.field_name == "Name"
    assert record.old_value == '"A"'
    assert record.new_value == '"B"'
    assert record.timestamp == NOW


def test_update_produces_one_record_per_modified_field_in_order():
    change = _update(
        {"Id": 3, "Name": "A", "Age": 10, "City": "X"},
        {"Id": 3, "Name": "B", "Age": 11, "City": "X"},
        ("Name", "Age"),
    )

    records = synthesize(change, timestamp=NOW)

    assert [r.field_name for r in records] == ["Name", "Age"]
    assert [(r.old_value, r.new_value) for r in records] == [('"A"', '"B"'), ("10", "11")]
    assert {r.entity_id for r in records} == {3}


def test_update_without_modified_fields_produces_nothing():
    change = _update({"Id": 1, "Name": "A"}, {"Id": 1, "Name": "A"}, ())
    assert synthesize(change, timestamp=NOW) == []


def test_update_to_null_serializes_json_null():
    change = _update({"Id": 1, "Name": "A"}, {"Id": 1, "Name": None}, ("Name",))

    [record] = synthesize(change, timestamp=NOW)

    assert record.new_value == "null"
    assert deserialize_value(record.new_value) is None


def test_delete_produces_single_whole_entity_record():
    change = PendingChange(
        entity_type_name="TestEntity",
        operation_kind=OperationKind.DELETE,
        identifier_field="Id",
        prior_values={"Id": 2, "Name": "gone"},
    )

    [record] = synthesize(change, timestamp=NOW)

    assert record.entity_id == 2
    assert record.operation_kind == "Deleted"
    assert record.field_name is None
    assert record.old_value is None
    assert record.new_value is None


def test_unknown_state_is_labelled_not_rejected(caplog):
    change = PendingChange(
        entity_type_name="TestEntity",
        operation_kind="archived",
        identifier_field="Id",
        current_values={"Id": 5},
    )

    with caplog.at_level("WARNING"):
        [record] = synthesize(change, timestamp=NOW)

    assert record.operation_kind == "Unknown"
    assert record.entity_id == 5
    assert record.field_name is None
    assert "audit_unknown_state" in caplog.text


def test_operation_label_mapping():
    assert operation_label(OperationKind.CREATE) == "Created"
    assert operation_label(OperationKind.UPDATE) == "Updated"
    assert operation_label(OperationKind.DELETE) == "Deleted"
    assert operation_label("detached") == "Unknown"
    assert operation_label(["unhashable"]) == "Unknown"


def test_explicit_operation_kind_overrides_snapshot_kind():
    change = _update({"Id": 1, "Name": "A"}, {"Id": 1, "Name": "B"}, ("Name",))
    [record] = synthesize(change, "update", timestamp=NOW)
    assert record.operation_kind == "Updated"


def test_delete_reads_identifier_from_prior_snapshot():
    change = PendingChange(
        entity_type_name="TestEntity",
        operation_kind=OperationKind.DELETE,
        identifier_field="Id",
        prior_values={"Id": 9},
        current_values={"Id": 100},
    )
    assert resolve_identifier(change) == 9


def test_update_reads_identifier_from_current_snapshot():
    change = _update({"Id": 100, "Name": "A"}, {"Id": 4, "Name": "B"}, ("Name",))
    assert resolve_identifier(change) == 4


@pytest.mark.parametrize("bad_id", [None, "7", 7.0, True])
def test_unresolvable_identifier_is_fatal(bad_id):
    change = _update({"Id": bad_id, "Name": "A"}, {"Id": bad_id, "Name": "B"}, ("Name",))
    with pytest.raises(IdentifierResolutionError):
        synthesize(change, timestamp=NOW)


def test_create_without_handle_cannot_resolve():
    change = PendingChange(
        entity_type_name="TestEntity",
        operation_kind=OperationKind.CREATE,
        identifier_field="Id",
        current_values={"Id": None, "Name": "C"},
    )
    with pytest.raises(IdentifierResolutionError, match="no instance handle"):
        synthesize(change, timestamp=NOW)


def test_composite_key_cannot_resolve():
    change = PendingChange(
        entity_type_name="Link",
        operation_kind=OperationKind.DELETE,
        identifier_field=None,
        prior_values={"left_id": 1, "right_id": 2},
    )
    with pytest.raises(IdentifierResolutionError, match="single-column primary key"):
        resolve_identifier(change)


def test_unserializable_value_fails_with_field_context():
    change = _update({"Id": 1, "Blob": object()}, {"Id": 1, "Blob": object()}, ("Blob",))
    with pytest.raises(AuditSerializationError) as excinfo:
        synthesize(change, timestamp=NOW)
    assert excinfo.value.entity_type_name == "TestEntity"
    assert excinfo.value.field_name == "Blob"
    assert "TestEntity.Blob" in str(excinfo.value)


def test_null_round_trip_is_null_not_string():
    text = serialize_value(None)
    assert text == "null"
    assert deserialize_value(text) is None
    assert deserialize_value(serialize_value("null")) == "null"
    assert deserialize_value(None) is None


def test_serialize_common_column_types():
    assert serialize_value(True) == "true"
    assert serialize_value(Decimal("1.50")) == '"1.50"'
    assert serialize_value(datetime(2026, 1, 2, 3, 4, 5)) == '"2026-01-02T03:04:05"'
