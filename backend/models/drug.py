# backend/models/drug.py
from sqlalchemy import (
    Column, Integer, String, Numeric, Date, DateTime, Boolean, ForeignKey,
    CheckConstraint, Index, JSON, text, func
)
from sqlalchemy.orm import relationship
from database import Base

# Represents a catalog entry: pricing, stock levels and lifecycle flags.
# A drug is never hard-deleted by regular users; is_deleted moves it to the
# recycle bin, is_locked protects it from deletion.
class Drug(Base):
    __tablename__ = "drugs"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    manufacturer = Column(String, nullable=False)

    price = Column(Numeric(12, 2), CheckConstraint("price >= 0"), nullable=False)
    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)
    min_stock_threshold = Column(Integer, CheckConstraint("min_stock_threshold >= 0"), nullable=False, default=10)
    expiry_date = Column(Date, nullable=False)

    description = Column(String, nullable=True)
    side_effects = Column(String, nullable=True)

    # Lifecycle
    is_locked = Column(Boolean, nullable=False, default=False)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    deleted_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_by = relationship("User", foreign_keys=[created_by_id])
    deleted_by = relationship("User", foreign_keys=[deleted_by_id])

    history = relationship(
        "ModificationLog",
        back_populates="drug",
        cascade="all, delete-orphan",
        order_by="ModificationLog.id.desc()",
    )
    # Purging a drug nulls drug_id on its sale items; the name snapshot stays
    sale_items = relationship("SaleItem", back_populates="drug")

    __table_args__ = (
        # Codes are unique among drugs that are not in the recycle bin
        Index(
            "uq_drugs_code_active", "code", unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("NOT is_deleted"),
        ),
    )

    @property
    def low_stock(self) -> bool:
        return self.stock <= self.min_stock_threshold


# One batch of field changes made by a single update call
class ModificationLog(Base):
    __tablename__ = "modification_logs"

    id = Column(Integer, primary_key=True, index=True)
    drug_id = Column(Integer, ForeignKey("drugs.id", ondelete="CASCADE"), nullable=False, index=True)
    changed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # [{"field": ..., "oldValue": ..., "newValue": ...}, ...]
    changes = Column(JSON, nullable=False)

    drug = relationship("Drug", back_populates="history")
    changed_by = relationship("User")
