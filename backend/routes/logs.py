# backend/routes/logs.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional, Any
from datetime import datetime

from database import get_db
from models.audit_log import AuditLog
from models.users import User
from schemas.common import Envelope, ORMBase, ok
from utils.errors import InvalidArgument
from utils.tokenJWT import admin_required

router = APIRouter(prefix="/logs", tags=["Logs"])


class AuditLogOut(ORMBase):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    username: Optional[str] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


class AuditLogPage(ORMBase):
    items: List[AuditLogOut]
    total: int
    page: int
    page_size: int


def _parse_date(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    if not value:
        return None
    # A bare upper-bound date includes that whole day
    if end_of_day and len(value) == 10:
        value += " 23:59:59"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise InvalidArgument(f"Invalid date: {value}")


def _filtered(query, *, action, user_id, resource, status, date_from, date_to):
    if action:
        query = query.filter(AuditLog.action.ilike(f"%{action}%"))
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if resource:
        query = query.filter(AuditLog.resource == resource.lower())
    if status:
        query = query.filter(AuditLog.status == status.upper())

    since = _parse_date(date_from)
    if since:
        query = query.filter(AuditLog.ts >= since)
    until = _parse_date(date_to, end_of_day=True)
    if until:
        query = query.filter(AuditLog.ts <= until)
    return query


# Admin view of the audit trail, newest first
@router.get("", response_model=Envelope[AuditLogPage])
def list_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Substring of the action, e.g. DRUG_"),
    user_id: Optional[int] = Query(None),
    resource: Optional[str] = Query(None, description="drugs, sales, auth, users or ai"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    date_to: Optional[str] = Query(None, description="YYYY-MM-DD or ISO datetime"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = _filtered(
        db.query(AuditLog),
        action=action, user_id=user_id, resource=resource,
        status=status, date_from=date_from, date_to=date_to,
    )
    total = query.count()
    rows = (
        query.order_by(AuditLog.ts.desc(), AuditLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return ok(AuditLogPage(
        items=[AuditLogOut.model_validate(r) for r in rows],
        total=total, page=page, page_size=page_size,
    ))
