# backend/routes/drugs.py
from typing import List, Union
from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session, joinedload, selectinload

from database import get_db
from models.drug import Drug, ModificationLog
from models.users import User
from schemas.common import Envelope, ok
from schemas.drug import (
    BatchDeleteRequest, BatchDeleteResult, DrugCreate, DrugOut, DrugUpdate,
    FieldChange, HistoryEntry,
)
from services import catalog
from utils.audit import client_ip, write_log
from utils.errors import AppError, InvalidArgument
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/drugs", tags=["Drugs"])


# Map Drug model to DrugOut schema with resolved user names
def _drug_to_out(drug: Drug) -> DrugOut:
    history = [
        HistoryEntry(
            timestamp=entry.timestamp,
            changed_by=entry.changed_by.name if entry.changed_by else None,
            changes=[FieldChange.model_validate(c) for c in (entry.changes or [])],
        )
        for entry in drug.history
    ]
    return DrugOut(
        id=drug.id,
        code=drug.code,
        name=drug.name,
        category=drug.category,
        manufacturer=drug.manufacturer,
        price=drug.price,
        stock=drug.stock,
        min_stock_threshold=drug.min_stock_threshold,
        expiry_date=drug.expiry_date,
        description=drug.description,
        side_effects=drug.side_effects,
        is_locked=drug.is_locked,
        is_deleted=drug.is_deleted,
        low_stock=drug.low_stock,
        created_at=drug.created_at,
        created_by=drug.created_by.name if drug.created_by else None,
        deleted_at=drug.deleted_at,
        deleted_by=drug.deleted_by.name if drug.deleted_by else None,
        history=history,
    )


def _with_relations(query):
    return query.options(
        joinedload(Drug.created_by),
        joinedload(Drug.deleted_by),
        selectinload(Drug.history).joinedload(ModificationLog.changed_by),
    )


# =========================
# LIST / DETAIL
# =========================
@router.get("", response_model=Envelope[List[DrugOut]])
def list_drugs(
    deleted: bool = Query(False, description="List the recycle bin instead of the active catalog"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    drugs = (
        _with_relations(db.query(Drug))
        .filter(Drug.is_deleted.is_(deleted))
        .order_by(Drug.created_at.desc(), Drug.id.desc())
        .all()
    )
    return ok([_drug_to_out(d) for d in drugs], f"{len(drugs)} drug(s)")


@router.get("/{drug_id}", response_model=Envelope[DrugOut])
def get_drug(
    drug_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ok(_drug_to_out(catalog.get_drug(db, drug_id)))


# =========================
# CREATE
# =========================
@router.post("", response_model=Envelope[Union[List[DrugOut], DrugOut]])
def add_drugs(
    request: Request,
    payload: Union[List[DrugCreate], DrugCreate] = Body(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    many = isinstance(payload, list)
    payloads = payload if many else [payload]

    try:
        drugs = catalog.create_drugs(db, payloads, current_user)
    except AppError as e:
        write_log(db, user_id=current_user.id, action="DRUG_CREATE", resource="drugs",
                  status="FAIL", ip=client_ip(request), meta={"reason": e.message})
        raise

    write_log(db, user_id=current_user.id, action="DRUG_CREATE", resource="drugs",
              ip=client_ip(request), meta={"ids": [d.id for d in drugs]})

    if many:
        return ok([_drug_to_out(d) for d in drugs], f"Added {len(drugs)} drug(s)")
    return ok(_drug_to_out(drugs[0]), "Drug added")


# =========================
# BATCH DELETE
# =========================
@router.post("/batch-delete", response_model=Envelope[BatchDeleteResult])
def batch_delete(
    payload: BatchDeleteRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = catalog.batch_delete(db, payload.ids, current_user)
    write_log(db, user_id=current_user.id, action="DRUG_BATCH_DELETE", resource="drugs",
              ip=client_ip(request), meta={"ids": payload.ids, **result})

    message = f"Moved {result['deleted']} drug(s) to the recycle bin"
    if result["skipped_locked"]:
        message += f", skipped {result['skipped_locked']} locked"
    return ok(BatchDeleteResult(**result), message)


# =========================
# UPDATE / LOCK / RESTORE
# =========================
@router.put("/{drug_id}", response_model=Envelope[DrugOut])
def update_drug(
    drug_id: int,
    payload: DrugUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    drug = catalog.get_drug(db, drug_id)
    ip = client_ip(request)

    if payload.action and payload.changed_fields():
        raise InvalidArgument(f"{payload.action} cannot be combined with field changes")

    if payload.action == "toggleLock":
        try:
            locked = catalog.toggle_lock(db, drug, current_user)
        except AppError as e:
            write_log(db, user_id=current_user.id, action="DRUG_LOCK", resource="drugs",
                      status="FAIL", ip=ip, meta={"id": drug_id, "reason": e.message})
            raise
        write_log(db, user_id=current_user.id, action="DRUG_LOCK", resource="drugs",
                  ip=ip, meta={"id": drug_id, "locked": locked})
        return ok(_drug_to_out(drug), "Drug locked" if locked else "Drug unlocked")

    if payload.action == "restore":
        try:
            restored = catalog.restore(db, drug, current_user)
        except AppError as e:
            write_log(db, user_id=current_user.id, action="DRUG_RESTORE", resource="drugs",
                      status="FAIL", ip=ip, meta={"id": drug_id, "reason": e.message})
            raise
        if restored:
            write_log(db, user_id=current_user.id, action="DRUG_RESTORE", resource="drugs",
                      ip=ip, meta={"id": drug_id})
        return ok(_drug_to_out(drug), "Drug restored" if restored else "Drug is already active")

    try:
        changes = catalog.update_drug(db, drug, payload, current_user)
    except AppError as e:
        write_log(db, user_id=current_user.id, action="DRUG_UPDATE", resource="drugs",
                  status="FAIL", ip=ip, meta={"id": drug_id, "reason": e.message})
        raise
    if changes:
        write_log(db, user_id=current_user.id, action="DRUG_UPDATE", resource="drugs",
                  ip=ip, meta={"id": drug_id, "fields": [c["field"] for c in changes]})
    return ok(_drug_to_out(drug), "Drug updated" if changes else "No changes")


# =========================
# DELETE / PURGE
# =========================
@router.delete("/{drug_id}", response_model=Envelope[DrugOut])
def delete_drug(
    drug_id: int,
    request: Request,
    permanent: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    drug = catalog.get_drug(db, drug_id)
    action = "DRUG_PURGE" if permanent else "DRUG_DELETE"
    ip = client_ip(request)

    try:
        if permanent:
            snapshot = _drug_to_out(drug)
            catalog.purge(db, drug, current_user)
        else:
            changed = catalog.soft_delete(db, drug, current_user)
    except AppError as e:
        write_log(db, user_id=current_user.id, action=action, resource="drugs",
                  status="FAIL", ip=ip, meta={"id": drug_id, "reason": e.message})
        raise

    write_log(db, user_id=current_user.id, action=action, resource="drugs",
              ip=ip, meta={"id": drug_id})

    if permanent:
        return ok(snapshot, "Drug permanently deleted")
    return ok(_drug_to_out(drug), "Moved to recycle bin" if changed else "Drug is already in the recycle bin")
