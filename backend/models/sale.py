# backend/models/sale.py
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

class SaleRecord(Base):
    __tablename__ = "sale_records"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    cashier_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    customer_name = Column(String, nullable=True)

    cashier = relationship("User")
    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )

# A single line of a sale; name and price are snapshots taken at sale time
class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(Integer, ForeignKey("sale_records.id"), nullable=False, index=True)
    drug_id = Column(Integer, ForeignKey("drugs.id", ondelete="SET NULL"), nullable=True, index=True)
    drug_name = Column(String, nullable=False)
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False)
    price_at_sale = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    sale = relationship("SaleRecord", back_populates="items")
    drug = relationship("Drug", back_populates="sale_items")
