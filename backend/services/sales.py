"""Point-of-sale checkout: validates a cart against live stock and records the sale."""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from models.drug import Drug
from models.sale import SaleItem, SaleRecord
from models.users import User
from schemas.sale import SaleItemIn
from utils.errors import InsufficientStock, InvalidArgument, NotFound

logger = logging.getLogger(__name__)

WALK_IN_CUSTOMER = "Walk-in customer"


def _lock_drug(db: Session, drug_id: int) -> Drug:
    drug = db.query(Drug).filter(Drug.id == drug_id).populate_existing().with_for_update().first()
    if drug is None or drug.is_deleted:
        raise NotFound(f"Drug {drug_id} not found")
    return drug


def create_sale(
    db: Session,
    items: Sequence[SaleItemIn],
    cashier: User,
    customer_name: Optional[str] = None,
) -> SaleRecord:
    """
    Sell the cart in one transaction.

    Each line is priced at the drug's current price. Lines for the same drug
    stay separate on the receipt, but their quantities are checked together
    against stock. Either the record, its items and every stock decrement are
    committed, or nothing is.
    """
    if not items:
        raise InvalidArgument("Cart is empty")
    for item in items:
        if item.quantity <= 0:
            raise InvalidArgument("Quantity must be a positive integer")

    drugs: Dict[int, Drug] = {}
    requested: Dict[int, int] = {}
    lines: List[SaleItem] = []

    try:
        # 1. Read and validate every line before any write
        for item in items:
            drug = drugs.get(item.drug_id)
            if drug is None:
                drug = _lock_drug(db, item.drug_id)
                drugs[drug.id] = drug

            wanted = requested.get(drug.id, 0) + item.quantity
            if wanted > drug.stock:
                raise InsufficientStock(drug.name, wanted, drug.stock)
            requested[drug.id] = wanted

            price = Decimal(str(drug.price))
            lines.append(SaleItem(
                drug_id=drug.id,
                drug_name=drug.name,
                quantity=item.quantity,
                price_at_sale=price,
                total=price * item.quantity,
            ))

        # 2. Totals
        total_amount = sum((line.total for line in lines), Decimal("0"))

        # 3. Record and decrement
        record = SaleRecord(
            total_amount=total_amount,
            cashier_id=cashier.id,
            customer_name=(customer_name or "").strip() or WALK_IN_CUSTOMER,
            items=lines,
        )
        db.add(record)
        db.flush()

        for drug_id, qty in requested.items():
            # Guarded decrement: a concurrent sale may have taken the stock
            updated = (
                db.query(Drug)
                .filter(Drug.id == drug_id, Drug.stock >= qty)
                .update({Drug.stock: Drug.stock - qty}, synchronize_session=False)
            )
            if updated != 1:
                available = db.query(Drug.stock).filter(Drug.id == drug_id).scalar() or 0
                raise InsufficientStock(drugs[drug_id].name, qty, available)

        db.commit()
    except InsufficientStock as e:
        db.rollback()
        logger.warning("Sale rejected for cashier %s: %s", cashier.username, e.message)
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(record)
    logger.info(
        "Sale %s recorded by %s: %d line(s), total %s",
        record.id, cashier.username, len(lines), record.total_amount,
    )
    return record


def list_sales(db: Session, limit: int = 100, offset: int = 0) -> List[SaleRecord]:
    return (
        db.query(SaleRecord)
        .order_by(SaleRecord.timestamp.desc(), SaleRecord.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
