from audit_trail.models.audit_log import AuditLog
from audit_trail.models.company import Company
from audit_trail.models.org import Org
from audit_trail.services.audit.changes import OperationKind, collect_changes, partition_changes
from audit_trail.services.audit.engines import count_affected_rows


def _persisted_org(db, name="Acme", slug="acme") -> Org:
    org = Org(name=name, slug=slug)
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


def test_collect_classifies_create_update_delete(db):
    keep = _persisted_org(db, "Keep", "keep")
    drop = _persisted_org(db, "Drop", "drop")

    keep.name = "Kept"
    db.delete(drop)
    db.add(Org(name="New", slug="new"))

    changes = collect_changes(db)
    kinds = {(c.entity_type_name, c.operation_kind) for c in changes}

    assert kinds == {
        ("Org", OperationKind.UPDATE),
        ("Org", OperationKind.DELETE),
        ("Org", OperationKind.CREATE),
    }


def test_partition_separates_identifier_pending_creates(db):
    org = _persisted_org(db)
    org.slug = "acme-2"
    db.add(Org(name="Other", slug="other"))

    known, pending = partition_changes(collect_changes(db))

    assert [c.operation_kind for c in known] == [OperationKind.UPDATE]
    assert [c.operation_kind for c in pending] == [OperationKind.CREATE]
    assert pending[0].current_values["id"] is None


def test_update_snapshot_has_prior_current_and_modified_fields(db):
    org = _persisted_org(db)
    company = Company(org_id=org.id, cnpj="123", razao_social="Alpha", uf="SP")
    db.add(company)
    db.commit()
    db.refresh(company)

    company.uf = "RJ"
    company.razao_social = "Beta"

    [change] = collect_changes(db)

    assert change.identifier_field == "id"
    # mapped column order, not assignment order
    assert change.modified_field_names == ("razao_social", "uf")
    assert change.prior_values["razao_social"] == "Alpha"
    assert change.current_values["razao_social"] == "Beta"
    assert change.prior_values["uf"] == "SP"
    assert change.current_values["uf"] == "RJ"
    assert change.current_values["id"] == company.id


def test_assigning_same_value_is_not_a_modification(db):
    org = _persisted_org(db)
    org.name = "Acme"

    changes = collect_changes(db)

    assert all(not c.modified_field_names for c in changes)
    assert count_affected_rows(db) == 0


def test_delete_snapshot_keeps_identifier_of_expired_instance(db):
    org = _persisted_org(db)
    org_id = org.id
    db.expire(org)
    db.delete(org)

    [change] = collect_changes(db)

    assert change.operation_kind is OperationKind.DELETE
    assert change.prior_values["id"] == org_id
    assert change.current_values == {}


def test_audit_rows_and_excluded_entities_are_not_collected(db):
    org = _persisted_org(db)
    db.add(AuditLog(created_at=org.created_at, entity_type="Org", entity_id=org.id, operation="Created"))
    org.name = "Renamed"

    assert collect_changes(db, excluded=["Org"]) == []
    assert [c.entity_type_name for c in collect_changes(db)] == ["Org"]


def test_collect_has_no_side_effects(db):
    org = _persisted_org(db)
    org.name = "Renamed"
    db.add(Org(name="Fresh", slug="fresh"))

    collect_changes(db)

    assert len(db.new) == 1
    assert org in db.dirty
    assert org.name == "Renamed"
