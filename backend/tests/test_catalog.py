from datetime import date
from decimal import Decimal

import pytest

from conftest import make_drug
from models.drug import Drug, ModificationLog
from schemas.drug import DrugCreate, DrugUpdate
from services import catalog
from utils.errors import Conflict, InvalidArgument, NotFound, PermissionDenied


def _payload(code, **overrides):
    data = dict(
        code=code, name=f"Drug {code}", category="General", manufacturer="Acme",
        price=Decimal("10.00"), stock=20, min_stock_threshold=5, expiry_date=date(2030, 6, 30),
    )
    data.update(overrides)
    return DrugCreate(**data)


# ---- create ----

def test_create_sets_creator_and_defaults(db, pharmacist):
    [drug] = catalog.create_drugs(db, [_payload("A1")], pharmacist)

    assert drug.id is not None
    assert drug.created_by_id == pharmacist.id
    assert drug.is_locked is False
    assert drug.is_deleted is False
    assert drug.history == []


def test_create_rejects_code_used_by_active_drug(db, pharmacist):
    make_drug(db, pharmacist, code="A1")

    with pytest.raises(Conflict):
        catalog.create_drugs(db, [_payload("A1")], pharmacist)


def test_create_allows_code_of_deleted_drug(db, pharmacist):
    make_drug(db, pharmacist, code="A1", is_deleted=True)

    [drug] = catalog.create_drugs(db, [_payload("A1")], pharmacist)

    assert drug.code == "A1"
    assert db.query(Drug).filter(Drug.code == "A1").count() == 2


def test_batch_create_is_all_or_nothing(db, pharmacist):
    make_drug(db, pharmacist, code="B2")

    with pytest.raises(Conflict):
        catalog.create_drugs(db, [_payload("B1"), _payload("B2")], pharmacist)

    assert db.query(Drug).filter(Drug.code == "B1").count() == 0


def test_batch_create_rejects_duplicate_codes_in_request(db, pharmacist):
    with pytest.raises(Conflict):
        catalog.create_drugs(db, [_payload("C1"), _payload("C1")], pharmacist)


# ---- update / diff ----

def test_update_only_stock_records_single_change(db, pharmacist):
    drug = make_drug(db, pharmacist, stock=10)

    changes = catalog.update_drug(db, drug, DrugUpdate(stock=25), pharmacist)

    assert changes == [{"field": "stock", "oldValue": 10, "newValue": 25}]
    logs = db.query(ModificationLog).filter(ModificationLog.drug_id == drug.id).all()
    assert len(logs) == 1
    assert logs[0].changes == [{"field": "stock", "oldValue": 10, "newValue": 25}]
    assert logs[0].changed_by_id == pharmacist.id
    assert drug.stock == 25


def test_update_with_identical_values_logs_nothing(db, pharmacist):
    drug = make_drug(db, pharmacist)

    changes = catalog.update_drug(
        db, drug,
        DrugUpdate(name=drug.name, price=Decimal("4.5"), stock=drug.stock, expiry_date=drug.expiry_date),
        pharmacist,
    )

    assert changes == []
    assert db.query(ModificationLog).count() == 0


def test_update_several_fields_is_one_log_entry(db, pharmacist):
    drug = make_drug(db, pharmacist)

    catalog.update_drug(
        db, drug,
        DrugUpdate(price=Decimal("5.25"), min_stock_threshold=8, side_effects="Drowsiness"),
        pharmacist,
    )

    [entry] = db.query(ModificationLog).all()
    fields = [c["field"] for c in entry.changes]
    assert fields == ["price", "minStockThreshold", "sideEffects"]
    assert entry.changes[0] == {"field": "price", "oldValue": 4.5, "newValue": 5.25}


def test_update_rejects_null_for_required_field(db, pharmacist):
    drug = make_drug(db, pharmacist)

    with pytest.raises(InvalidArgument):
        catalog.update_drug(db, drug, DrugUpdate(name=None), pharmacist)


def test_update_rejects_code_of_another_active_drug(db, pharmacist):
    make_drug(db, pharmacist, code="X1")
    drug = make_drug(db, pharmacist, code="X2")

    with pytest.raises(Conflict):
        catalog.update_drug(db, drug, DrugUpdate(code="X1"), pharmacist)

    db.refresh(drug)
    assert drug.code == "X2"
    assert db.query(ModificationLog).count() == 0


# ---- lifecycle ----

def test_soft_delete_marks_drug(db, pharmacist):
    drug = make_drug(db, pharmacist)

    assert catalog.soft_delete(db, drug, pharmacist) is True

    db.refresh(drug)
    assert drug.is_deleted is True
    assert drug.deleted_at is not None
    assert drug.deleted_by_id == pharmacist.id


def test_soft_delete_locked_drug_is_denied_and_unchanged(db, pharmacist):
    drug = make_drug(db, pharmacist, is_locked=True)

    with pytest.raises(PermissionDenied):
        catalog.soft_delete(db, drug, pharmacist)

    db.refresh(drug)
    assert drug.is_deleted is False
    assert drug.deleted_at is None


def test_restore_clears_deletion_markers(db, pharmacist):
    drug = make_drug(db, pharmacist)
    catalog.soft_delete(db, drug, pharmacist)

    assert catalog.restore(db, drug, pharmacist) is True

    db.refresh(drug)
    assert drug.is_deleted is False
    assert drug.deleted_at is None
    assert drug.deleted_by_id is None


def test_restore_of_active_drug_is_noop(db, pharmacist):
    drug = make_drug(db, pharmacist)

    assert catalog.restore(db, drug, pharmacist) is False
    db.refresh(drug)
    assert drug.is_deleted is False


def test_restore_ignores_lock(db, admin):
    drug = make_drug(db, admin)
    catalog.soft_delete(db, drug, admin)
    catalog.toggle_lock(db, drug, admin)

    assert catalog.restore(db, drug, admin) is True
    assert drug.is_locked is True


def test_restore_conflicts_with_new_active_code(db, pharmacist):
    old = make_drug(db, pharmacist, code="R1")
    catalog.soft_delete(db, old, pharmacist)
    make_drug(db, pharmacist, code="R1", name="Replacement")

    with pytest.raises(Conflict):
        catalog.restore(db, old, pharmacist)

    db.refresh(old)
    assert old.is_deleted is True


def test_toggle_lock_requires_admin(db, pharmacist):
    drug = make_drug(db, pharmacist)

    with pytest.raises(PermissionDenied):
        catalog.toggle_lock(db, drug, pharmacist)


def test_toggle_lock_flips_in_any_state(db, admin):
    drug = make_drug(db, admin, is_deleted=True)

    assert catalog.toggle_lock(db, drug, admin) is True
    assert catalog.toggle_lock(db, drug, admin) is False


def test_purge_requires_admin(db, pharmacist):
    drug = make_drug(db, pharmacist, is_deleted=True)

    with pytest.raises(PermissionDenied):
        catalog.purge(db, drug, pharmacist)


def test_purge_active_locked_drug_is_denied(db, admin):
    drug = make_drug(db, admin, is_locked=True)

    with pytest.raises(PermissionDenied):
        catalog.purge(db, drug, admin)
    assert db.query(Drug).count() == 1


def test_purge_deleted_drug_removes_row_and_history(db, admin):
    drug = make_drug(db, admin)
    catalog.update_drug(db, drug, DrugUpdate(stock=3), admin)
    catalog.soft_delete(db, drug, admin)
    drug_id = drug.id

    catalog.purge(db, drug, admin)

    assert db.query(Drug).count() == 0
    assert db.query(ModificationLog).count() == 0
    with pytest.raises(NotFound):
        catalog.get_drug(db, drug_id)


def test_purge_active_unlocked_drug_directly(db, admin):
    drug = make_drug(db, admin)

    catalog.purge(db, drug, admin)

    assert db.query(Drug).count() == 0


# ---- batch delete ----

def test_batch_delete_skips_locked(db, pharmacist):
    a = make_drug(db, pharmacist, code="A")
    b = make_drug(db, pharmacist, code="B", is_locked=True)

    result = catalog.batch_delete(db, [a.id, b.id], pharmacist)

    assert result == {"deleted": 1, "skipped_locked": 1, "not_found": []}
    db.refresh(a)
    db.refresh(b)
    assert a.is_deleted is True
    assert b.is_deleted is False


def test_batch_delete_reports_missing_and_ignores_already_deleted(db, pharmacist):
    a = make_drug(db, pharmacist, code="A", is_deleted=True)

    result = catalog.batch_delete(db, [a.id, 999], pharmacist)

    assert result == {"deleted": 0, "skipped_locked": 0, "not_found": [999]}


def test_batch_delete_requires_ids(db, pharmacist):
    with pytest.raises(InvalidArgument):
        catalog.batch_delete(db, [], pharmacist)
