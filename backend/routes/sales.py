# backend/routes/sales.py
from typing import List
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from models.sale import SaleRecord
from models.users import User
from schemas.common import Envelope, ok
from schemas.sale import SaleCreate, SaleItemOut, SaleOut
from services import sales as sales_service
from utils.audit import client_ip, write_log
from utils.errors import AppError
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/sales", tags=["Sales"])


# Map SaleRecord model to SaleOut schema
def _sale_to_out(sale: SaleRecord) -> SaleOut:
    items = [
        SaleItemOut(
            drug_id=it.drug_id,
            drug_name=it.drug_name,
            quantity=it.quantity,
            price_at_sale=it.price_at_sale,
            total=it.total,
        )
        for it in sale.items
    ]
    return SaleOut(
        id=sale.id,
        timestamp=sale.timestamp,
        total_amount=sale.total_amount,
        cashier_name=sale.cashier.name if sale.cashier else None,
        customer_name=sale.customer_name,
        items=items,
    )


@router.get("", response_model=Envelope[List[SaleOut]])
def list_sales(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    sales = sales_service.list_sales(db, limit=limit, offset=offset)
    return ok([_sale_to_out(s) for s in sales], f"{len(sales)} sale(s)")


@router.post("", response_model=Envelope[SaleOut])
def create_sale(
    payload: SaleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        sale = sales_service.create_sale(db, payload.items, current_user, payload.customer_name)
    except AppError as e:
        write_log(db, user_id=current_user.id, action="SALE_CREATE", resource="sales",
                  status="FAIL", ip=client_ip(request),
                  meta={"reason": e.message, "items": [i.model_dump() for i in payload.items]})
        raise

    write_log(db, user_id=current_user.id, action="SALE_CREATE", resource="sales",
              ip=client_ip(request), meta={"id": sale.id, "total": float(sale.total_amount)})
    return ok(_sale_to_out(sale), "Sale recorded")
