import logging
from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.audit_log import AuditLog, STATUS_SUCCESS

logger = logging.getLogger(__name__)


def client_ip(request: Optional[Request]) -> Optional[str]:
    if request is None or request.client is None:
        return None
    return request.client.host


# Persist an audit entry in its own commit; callers finish their own
# transaction first so a failed action still leaves a FAIL record.
def write_log(db: Session, *, user_id, action, resource, status=STATUS_SUCCESS, ip=None, meta=None):
    entry = AuditLog(user_id=user_id, action=action, resource=resource, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to write audit log %s/%s", resource, action)
        raise
