# backend/schemas/drug.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Literal, Optional
from pydantic import Field, field_validator

from schemas.common import ORMBase


# Shared attributes of catalog entries
class DrugBase(ORMBase):
    code: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    manufacturer: str = Field(min_length=1)
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(ge=0)
    min_stock_threshold: int = Field(default=10, ge=0)
    expiry_date: date
    description: Optional[str] = None
    side_effects: Optional[str] = None

    # Whitespace-only text counts as missing
    @field_validator("code", "name", "category", "manufacturer", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


# Schema for adding a drug to the catalog
class DrugCreate(DrugBase):
    pass


# PUT /drugs/{id}: either a lifecycle action or a partial field update
class DrugUpdate(ORMBase):
    action: Optional[Literal["toggleLock", "restore"]] = None

    code: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    manufacturer: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)
    min_stock_threshold: Optional[int] = Field(default=None, ge=0)
    expiry_date: Optional[date] = None
    description: Optional[str] = None
    side_effects: Optional[str] = None

    @field_validator("code", "name", "category", "manufacturer", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    def changed_fields(self) -> set:
        """Field names sent by the client, ``action`` excluded."""
        return set(self.model_fields_set) - {"action"}


# One field-level diff inside a modification log entry
class FieldChange(ORMBase):
    field: str
    old_value: Any = None
    new_value: Any = None


class HistoryEntry(ORMBase):
    timestamp: Optional[datetime] = None
    changed_by: Optional[str] = None
    changes: List[FieldChange]


# Full drug representation returned by the API
class DrugOut(ORMBase):
    id: int
    code: str
    name: str
    category: str
    manufacturer: str
    price: float
    stock: int
    min_stock_threshold: int
    expiry_date: date
    description: Optional[str] = None
    side_effects: Optional[str] = None
    is_locked: bool
    is_deleted: bool
    low_stock: bool
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    history: List[HistoryEntry] = []


class BatchDeleteRequest(ORMBase):
    ids: List[int]


class BatchDeleteResult(ORMBase):
    deleted: int
    skipped_locked: int
    not_found: List[int] = []
