# backend/routes/stats.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import date, datetime, time, timedelta, timezone
from typing import List

from config import settings
from database import get_db
from utils.tokenJWT import get_current_user
from models.users import User
from models.drug import Drug
from models.sale import SaleRecord
from schemas.common import Envelope, ORMBase, ok

router = APIRouter(
    prefix="/stats",
    tags=["Stats"]
)

# === Response Schemas ===

class CategoryStock(ORMBase):
    category: str
    drugs: int
    stock: int

class StatsSummary(ORMBase):
    total_revenue: float
    total_sales: int
    sales_today: int
    revenue_today: float
    total_products: int
    low_stock_count: int
    expiring_soon_count: int
    expired_count: int
    inventory_value: float
    recycle_bin_count: int
    categories: List[CategoryStock]


# === Dashboard Summary ===

def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@router.get("/summary", response_model=Envelope[StatsSummary])
def get_stats_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    active = db.query(Drug).filter(Drug.is_deleted.is_(False))
    # Sale timestamps are stored in UTC, so "today" is the UTC date everywhere
    today = _utc_today()

    # Sales totals, all time and since midnight
    total_revenue = db.query(func.coalesce(func.sum(SaleRecord.total_amount), 0)).scalar()
    total_sales = db.query(SaleRecord).count()

    midnight = datetime.combine(today, time.min)
    sales_today = db.query(SaleRecord).filter(SaleRecord.timestamp >= midnight).count()
    revenue_today = (
        db.query(func.coalesce(func.sum(SaleRecord.total_amount), 0))
        .filter(SaleRecord.timestamp >= midnight)
        .scalar()
    )

    # Catalog health
    total_products = active.count()
    low_stock_count = active.filter(Drug.stock <= Drug.min_stock_threshold).count()
    warn_until = today + timedelta(days=settings.EXPIRY_WARNING_DAYS)
    expired_count = active.filter(Drug.expiry_date < today).count()
    expiring_soon_count = active.filter(
        Drug.expiry_date >= today, Drug.expiry_date <= warn_until
    ).count()
    inventory_value = (
        db.query(func.coalesce(func.sum(Drug.price * Drug.stock), 0))
        .filter(Drug.is_deleted.is_(False))
        .scalar()
    )
    recycle_bin_count = db.query(Drug).filter(Drug.is_deleted.is_(True)).count()

    # Stock per category
    rows = (
        db.query(Drug.category, func.count(Drug.id), func.coalesce(func.sum(Drug.stock), 0))
        .filter(Drug.is_deleted.is_(False))
        .group_by(Drug.category)
        .order_by(Drug.category)
        .all()
    )
    categories = [CategoryStock(category=c, drugs=n, stock=s) for c, n, s in rows]

    summary = StatsSummary(
        total_revenue=float(total_revenue or 0),
        total_sales=total_sales,
        sales_today=sales_today,
        revenue_today=float(revenue_today or 0),
        total_products=total_products,
        low_stock_count=low_stock_count,
        expiring_soon_count=expiring_soon_count,
        expired_count=expired_count,
        inventory_value=float(inventory_value or 0),
        recycle_bin_count=recycle_bin_count,
        categories=categories,
    )
    return ok(summary)
