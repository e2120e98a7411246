# backend/routes/health.py
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from database import get_db
from models.drug import Drug
from models.sale import SaleRecord
from models.users import User
from schemas.common import fail, ok

router = APIRouter(tags=["Health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        data = {
            "database": "connected",
            "users": db.query(User).count(),
            "drugs": db.query(Drug).count(),
            "sales": db.query(SaleRecord).count(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except SQLAlchemyError as e:
        logger.exception("Health check failed")
        return JSONResponse(status_code=503, content=fail(f"Database unavailable: {e.__class__.__name__}", "Unavailable"))
    return ok(data, "API is running")
