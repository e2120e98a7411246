from pydantic import Field
from typing import List, Optional
from datetime import datetime

from schemas.common import ORMBase


# Input schema for one cart line
class SaleItemIn(ORMBase):
    drug_id: int
    quantity: int = Field(gt=0)


# Input schema for checking out a cart
class SaleCreate(ORMBase):
    items: List[SaleItemIn]
    customer_name: Optional[str] = None


# Output schema for an individual sale line item
class SaleItemOut(ORMBase):
    drug_id: Optional[int] = None
    drug_name: str
    quantity: int
    price_at_sale: float
    total: float


# Output schema representing a full sale receipt
class SaleOut(ORMBase):
    id: int
    timestamp: Optional[datetime] = None
    total_amount: float
    cashier_name: Optional[str] = None
    customer_name: Optional[str] = None
    items: List[SaleItemOut]
