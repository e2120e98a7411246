"""
Drug catalog lifecycle.

A drug is ``Active`` or ``Deleted`` (recycle bin); purging removes the row.
``is_locked`` is orthogonal to both states and only blocks deletion.

    Active  --delete-->  Deleted     unlocked only
    Deleted --restore--> Active      code must not collide with an active drug
    Deleted --purge-->   (gone)      admin only
    Active  --purge-->   (gone)      admin only, unlocked only
    toggle_lock                      admin only, any state

Every function commits its own unit of work and rolls back on failure.
"""
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.drug import Drug, ModificationLog
from models.users import User
from schemas.drug import DrugCreate, DrugUpdate
from utils.errors import Conflict, InvalidArgument, NotFound, PermissionDenied

logger = logging.getLogger(__name__)

# (model attribute, name reported in the modification log)
TRACKED_FIELDS = (
    ("name", "name"),
    ("code", "code"),
    ("category", "category"),
    ("manufacturer", "manufacturer"),
    ("price", "price"),
    ("stock", "stock"),
    ("min_stock_threshold", "minStockThreshold"),
    ("expiry_date", "expiryDate"),
    ("description", "description"),
    ("side_effects", "sideEffects"),
)

REQUIRED_FIELDS = frozenset(
    {"name", "code", "category", "manufacturer", "price", "stock", "min_stock_threshold", "expiry_date"}
)
TEXT_FIELDS = frozenset({"name", "code", "category", "manufacturer", "description", "side_effects"})


def _now() -> datetime:
    return datetime.now(timezone.utc)


# Blank text becomes None, so required fields are rejected by diff_drug
def _normalize(attr: str, value):
    if value is None:
        return None
    if attr == "price":
        return Decimal(str(value)).quantize(Decimal("0.01"))
    if attr in TEXT_FIELDS:
        value = value.strip()
        return value or None
    return value


def _jsonable(value):
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _commit(db: Session, conflict_message: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Integrity error: %s", e.orig)
        raise Conflict(conflict_message) from e
    except Exception:
        db.rollback()
        raise


# ---- LOOKUPS ----

def get_drug(db: Session, drug_id: int) -> Drug:
    drug = db.query(Drug).filter(Drug.id == drug_id).first()
    if drug is None:
        raise NotFound(f"Drug {drug_id} not found")
    return drug


def code_in_use(db: Session, code: str, exclude_id: Optional[int] = None) -> bool:
    """True when an active (non-deleted) drug already uses ``code``."""
    query = db.query(Drug.id).filter(Drug.code == code, Drug.is_deleted.is_(False))
    if exclude_id is not None:
        query = query.filter(Drug.id != exclude_id)
    return query.first() is not None


# ---- CREATE ----

def create_drugs(db: Session, payloads: Sequence[DrugCreate], actor: User) -> List[Drug]:
    """Add one or more drugs; the whole batch is rejected on any code clash."""
    if not payloads:
        raise InvalidArgument("No drugs to add")

    codes = [p.code for p in payloads]
    seen, repeated = set(), set()
    for code in codes:
        if code in seen:
            repeated.add(code)
        seen.add(code)
    if repeated:
        raise Conflict(f"Duplicate drug codes in request: {', '.join(sorted(repeated))}")

    taken = [
        row[0] for row in
        db.query(Drug.code).filter(Drug.code.in_(codes), Drug.is_deleted.is_(False)).all()
    ]
    if taken:
        raise Conflict(f"Drug code already exists: {', '.join(sorted(taken))}")

    drugs = []
    for payload in payloads:
        data = {attr: _normalize(attr, getattr(payload, attr)) for attr, _ in TRACKED_FIELDS}
        missing = [label for attr, label in TRACKED_FIELDS if attr in REQUIRED_FIELDS and data[attr] is None]
        if missing:
            db.rollback()
            raise InvalidArgument(f"{', '.join(missing)} cannot be empty")
        drug = Drug(**data, created_by_id=actor.id)
        db.add(drug)
        drugs.append(drug)

    _commit(db, "Drug code already exists")
    for drug in drugs:
        db.refresh(drug)
    logger.info("User %s added %d drug(s): %s", actor.username, len(drugs), ", ".join(codes))
    return drugs


# ---- UPDATE ----

def diff_drug(drug: Drug, update: DrugUpdate) -> List[dict]:
    """Field-level diff of the values explicitly set on ``update``."""
    provided = update.model_dump(exclude_unset=True)
    changes = []
    for attr, label in TRACKED_FIELDS:
        if attr not in provided:
            continue
        new_value = _normalize(attr, provided[attr])
        if new_value is None and attr in REQUIRED_FIELDS:
            raise InvalidArgument(f"{label} cannot be empty")
        old_value = _normalize(attr, getattr(drug, attr))
        if old_value != new_value:
            changes.append({
                "attr": attr,
                "field": label,
                "oldValue": _jsonable(old_value),
                "newValue": _jsonable(new_value),
                "value": new_value,
            })
    return changes


def update_drug(db: Session, drug: Drug, update: DrugUpdate, actor: User) -> List[dict]:
    """Apply a partial update; returns the recorded changes (may be empty)."""
    changes = diff_drug(drug, update)
    if not changes:
        return []

    new_code = next((c["value"] for c in changes if c["attr"] == "code"), None)
    if new_code is not None and not drug.is_deleted and code_in_use(db, new_code, exclude_id=drug.id):
        raise Conflict(f"Drug code already exists: {new_code}")

    for change in changes:
        setattr(drug, change["attr"], change["value"])

    recorded = [{k: c[k] for k in ("field", "oldValue", "newValue")} for c in changes]
    db.add(ModificationLog(drug=drug, changed_by_id=actor.id, changes=recorded))
    _commit(db, "Drug code already exists")
    db.refresh(drug)
    logger.info("User %s updated drug %s: %s", actor.username, drug.id, [c["field"] for c in recorded])
    return recorded


# ---- LIFECYCLE ----

def soft_delete(db: Session, drug: Drug, actor: User) -> bool:
    """Move to the recycle bin. Returns False when it was already there."""
    if drug.is_locked:
        raise PermissionDenied(f"Drug {drug.name} is locked and cannot be deleted")
    if drug.is_deleted:
        return False

    drug.is_deleted = True
    drug.deleted_at = _now()
    drug.deleted_by_id = actor.id
    _commit(db, "Could not delete drug")
    logger.info("User %s moved drug %s to the recycle bin", actor.username, drug.id)
    return True


def restore(db: Session, drug: Drug, actor: User) -> bool:
    """Bring a drug back from the recycle bin. Returns False if it was active."""
    if not drug.is_deleted:
        return False
    if code_in_use(db, drug.code, exclude_id=drug.id):
        raise Conflict(f"Cannot restore: code {drug.code} is used by an active drug")

    drug.is_deleted = False
    drug.deleted_at = None
    drug.deleted_by_id = None
    _commit(db, f"Cannot restore: code {drug.code} is used by an active drug")
    logger.info("User %s restored drug %s", actor.username, drug.id)
    return True


def purge(db: Session, drug: Drug, actor: User) -> None:
    """Remove a drug permanently together with its modification history."""
    if not actor.is_admin:
        raise PermissionDenied("Only administrators can permanently delete drugs")
    if not drug.is_deleted and drug.is_locked:
        raise PermissionDenied(f"Drug {drug.name} is locked and cannot be deleted")

    drug_id = drug.id
    db.delete(drug)
    _commit(db, "Could not delete drug")
    logger.warning("User %s permanently deleted drug %s", actor.username, drug_id)


def toggle_lock(db: Session, drug: Drug, actor: User) -> bool:
    """Flip the lock flag; returns the new value."""
    if not actor.is_admin:
        raise PermissionDenied("Only administrators can change the lock state")
    drug.is_locked = not drug.is_locked
    _commit(db, "Could not change lock state")
    logger.info("User %s set is_locked=%s on drug %s", actor.username, drug.is_locked, drug.id)
    return drug.is_locked


def batch_delete(db: Session, ids: Iterable[int], actor: User) -> dict:
    """
    Soft-delete every unlocked drug in ``ids``.

    Locked drugs are skipped and counted, not treated as failures. Drugs
    already in the recycle bin are left as they are.
    """
    ids = list(dict.fromkeys(ids))
    if not ids:
        raise InvalidArgument("Provide at least one drug id")

    drugs = db.query(Drug).filter(Drug.id.in_(ids)).all()
    found = {d.id for d in drugs}
    locked = [d for d in drugs if d.is_locked]
    targets = [d for d in drugs if not d.is_locked and not d.is_deleted]

    now = _now()
    for drug in targets:
        drug.is_deleted = True
        drug.deleted_at = now
        drug.deleted_by_id = actor.id
    _commit(db, "Could not delete drugs")

    if locked:
        logger.info("Batch delete skipped locked drugs: %s", [d.id for d in locked])
    return {
        "deleted": len(targets),
        "skipped_locked": len(locked),
        "not_found": [i for i in ids if i not in found],
    }
