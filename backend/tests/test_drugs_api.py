from conftest import make_drug
from models.audit_log import AuditLog
from models.drug import Drug, ModificationLog


NEW_DRUG = {
    "code": "D100",
    "name": "Amoxicillin 250mg",
    "category": "Antibiotics",
    "manufacturer": "Acme Pharma",
    "price": 12.5,
    "stock": 10,
    "minStockThreshold": 5,
    "expiryDate": "2030-12-31",
    "description": "Broad-spectrum penicillin.",
}


def test_requires_token(client):
    res = client.get("/drugs")

    assert res.status_code == 401
    assert res.json() == {
        "success": False, "data": None, "message": "Missing bearer token", "error": "Unauthorized",
    }


def test_rejects_invalid_token(client):
    res = client.get("/drugs", headers={"Authorization": "Bearer not-a-token"})

    assert res.status_code == 401
    assert res.json()["error"] == "Unauthorized"


def test_create_and_get_drug(client, pharm_headers):
    res = client.post("/drugs", json=NEW_DRUG, headers=pharm_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    drug = body["data"]
    assert drug["code"] == "D100"
    assert drug["price"] == 12.5
    assert drug["minStockThreshold"] == 5
    assert drug["expiryDate"] == "2030-12-31"
    assert drug["createdBy"] == "Duty Pharmacist"
    assert drug["isLocked"] is False
    assert drug["lowStock"] is False
    assert drug["history"] == []

    res = client.get(f"/drugs/{drug['id']}", headers=pharm_headers)
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Amoxicillin 250mg"


def test_create_many(client, pharm_headers):
    second = dict(NEW_DRUG, code="D101", name="Cefradine")

    res = client.post("/drugs", json=[NEW_DRUG, second], headers=pharm_headers)

    assert res.status_code == 200
    assert [d["code"] for d in res.json()["data"]] == ["D100", "D101"]


def test_create_duplicate_code_conflicts(client, pharm_headers):
    client.post("/drugs", json=NEW_DRUG, headers=pharm_headers)

    res = client.post("/drugs", json=NEW_DRUG, headers=pharm_headers)

    assert res.status_code == 409
    assert res.json()["error"] == "Conflict"


def test_create_validation_error_uses_envelope(client, pharm_headers):
    res = client.post("/drugs", json=dict(NEW_DRUG, stock=-1), headers=pharm_headers)

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["error"] == "InvalidArgument"
    assert "stock" in body["message"]


def test_create_rejects_blank_text_fields(client, db, pharm_headers):
    res = client.post(
        "/drugs", json=dict(NEW_DRUG, name=" ", category="", manufacturer="   "), headers=pharm_headers,
    )

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidArgument"
    for field in ("name", "category", "manufacturer"):
        assert field in res.json()["message"]
    assert db.query(Drug).count() == 0


def test_update_rejects_blank_text_fields(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, category="Pain Relief")

    res = client.put(f"/drugs/{drug.id}", json={"category": "  "}, headers=pharm_headers)

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidArgument"
    db.expire_all()
    assert db.get(Drug, drug.id).category == "Pain Relief"
    assert db.query(ModificationLog).count() == 0


def test_update_strips_text_before_diffing(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, manufacturer="Acme Pharma")

    res = client.put(f"/drugs/{drug.id}", json={"manufacturer": "  Acme Pharma "}, headers=pharm_headers)

    assert res.json()["message"] == "No changes"
    assert db.query(ModificationLog).count() == 0


def test_action_with_field_changes_is_rejected(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, stock=10, is_deleted=True)

    res = client.put(f"/drugs/{drug.id}", json={"action": "restore", "stock": 99}, headers=pharm_headers)

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidArgument"
    db.expire_all()
    restored = db.get(Drug, drug.id)
    assert restored.is_deleted is True
    assert restored.stock == 10


def test_failed_restore_and_update_are_audited(client, db, pharmacist, pharm_headers):
    old = make_drug(db, pharmacist, code="R1", is_deleted=True)
    make_drug(db, pharmacist, code="R1", name="Replacement")
    other = make_drug(db, pharmacist, code="R2")

    assert client.put(f"/drugs/{old.id}", json={"action": "restore"}, headers=pharm_headers).status_code == 409
    assert client.put(f"/drugs/{other.id}", json={"code": "R1"}, headers=pharm_headers).status_code == 409

    failed = (
        db.query(AuditLog)
        .filter(AuditLog.status == "FAIL")
        .order_by(AuditLog.id)
        .all()
    )
    assert [(log.action, log.meta["id"]) for log in failed] == [
        ("DRUG_RESTORE", old.id),
        ("DRUG_UPDATE", other.id),
    ]


def test_get_missing_drug(client, pharm_headers):
    res = client.get("/drugs/404", headers=pharm_headers)

    assert res.status_code == 404
    assert res.json()["error"] == "NotFound"


def test_list_active_and_recycle_bin(client, db, pharmacist, pharm_headers):
    make_drug(db, pharmacist, code="A")
    make_drug(db, pharmacist, code="B", is_deleted=True)

    active = client.get("/drugs", headers=pharm_headers).json()["data"]
    deleted = client.get("/drugs?deleted=true", headers=pharm_headers).json()["data"]

    assert [d["code"] for d in active] == ["A"]
    assert [d["code"] for d in deleted] == ["B"]


def test_update_records_history(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, stock=10)

    res = client.put(f"/drugs/{drug.id}", json={"stock": 4}, headers=pharm_headers)

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["stock"] == 4
    assert data["lowStock"] is True
    [entry] = data["history"]
    assert entry["changedBy"] == "Duty Pharmacist"
    assert entry["changes"] == [{"field": "stock", "oldValue": 10, "newValue": 4}]


def test_update_without_changes(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, stock=10)

    res = client.put(f"/drugs/{drug.id}", json={"stock": 10, "name": drug.name}, headers=pharm_headers)

    assert res.json()["message"] == "No changes"
    assert res.json()["data"]["history"] == []


def test_toggle_lock_admin_only(client, db, admin, pharmacist, admin_headers, pharm_headers):
    drug = make_drug(db, pharmacist)

    denied = client.put(f"/drugs/{drug.id}", json={"action": "toggleLock"}, headers=pharm_headers)
    assert denied.status_code == 403
    assert denied.json()["error"] == "PermissionDenied"

    res = client.put(f"/drugs/{drug.id}", json={"action": "toggleLock"}, headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["isLocked"] is True


def test_delete_locked_drug_is_denied(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist, is_locked=True)

    res = client.delete(f"/drugs/{drug.id}", headers=pharm_headers)

    assert res.status_code == 403
    db.expire_all()
    assert db.get(Drug, drug.id).is_deleted is False


def test_soft_delete_then_restore(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist)

    res = client.delete(f"/drugs/{drug.id}", headers=pharm_headers)
    assert res.status_code == 200
    assert res.json()["data"]["isDeleted"] is True
    assert res.json()["data"]["deletedBy"] == "Duty Pharmacist"

    res = client.put(f"/drugs/{drug.id}", json={"action": "restore"}, headers=pharm_headers)
    assert res.status_code == 200
    assert res.json()["data"]["isDeleted"] is False
    assert res.json()["data"]["deletedBy"] is None


def test_restore_active_drug_is_noop(client, db, pharmacist, pharm_headers):
    drug = make_drug(db, pharmacist)

    res = client.put(f"/drugs/{drug.id}", json={"action": "restore"}, headers=pharm_headers)

    assert res.status_code == 200
    assert res.json()["message"] == "Drug is already active"


def test_permanent_delete_requires_admin(client, db, pharmacist, pharm_headers, admin_headers):
    drug_id = make_drug(db, pharmacist, is_deleted=True).id

    denied = client.delete(f"/drugs/{drug_id}?permanent=true", headers=pharm_headers)
    assert denied.status_code == 403

    res = client.delete(f"/drugs/{drug_id}?permanent=true", headers=admin_headers)
    assert res.status_code == 200
    assert res.json()["data"]["id"] == drug_id
    db.expire_all()
    assert db.get(Drug, drug_id) is None


def test_batch_delete_skips_locked(client, db, pharmacist, pharm_headers):
    a = make_drug(db, pharmacist, code="A")
    b = make_drug(db, pharmacist, code="B", is_locked=True)

    res = client.post("/drugs/batch-delete", json={"ids": [a.id, b.id]}, headers=pharm_headers)

    assert res.status_code == 200
    assert res.json()["data"] == {"deleted": 1, "skippedLocked": 1, "notFound": []}
    db.expire_all()
    assert db.get(Drug, a.id).is_deleted is True
    assert db.get(Drug, b.id).is_deleted is False


def test_batch_delete_empty_ids(client, pharm_headers):
    res = client.post("/drugs/batch-delete", json={"ids": []}, headers=pharm_headers)

    assert res.status_code == 400
    assert res.json()["error"] == "InvalidArgument"
