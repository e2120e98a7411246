"""Operational AI assistant: builds store context and forwards it to the chat model."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.drug import Drug
from models.sale import SaleRecord
from utils.ai_client import chat_client
from utils.errors import InvalidArgument

logger = logging.getLogger(__name__)

RECENT_SALES_WINDOW = 100
ALLOWED_CHAT_ROLES = {"user", "assistant"}
MAX_CHAT_TURNS = 20


@dataclass
class StoreSnapshot:
    total_drugs: int
    recent_sales: int
    inventory_value: Decimal
    low_stock: List[str] = field(default_factory=list)

    def describe(self) -> str:
        low = ", ".join(self.low_stock) if self.low_stock else "none"
        return (
            f"- Drugs in catalog: {self.total_drugs}\n"
            f"- Low-stock drugs: {low}\n"
            f"- Recent transactions: {self.recent_sales}\n"
            f"- Total inventory value: {self.inventory_value:.2f}"
        )


def build_snapshot(db: Session) -> StoreSnapshot:
    active = db.query(Drug).filter(Drug.is_deleted.is_(False))
    total = active.count()
    value = (
        db.query(func.coalesce(func.sum(Drug.price * Drug.stock), 0))
        .filter(Drug.is_deleted.is_(False))
        .scalar()
    )
    low = (
        active.filter(Drug.stock <= Drug.min_stock_threshold)
        .order_by(Drug.stock.asc(), Drug.name.asc())
        .all()
    )
    recent = min(db.query(SaleRecord).count(), RECENT_SALES_WINDOW)
    return StoreSnapshot(
        total_drugs=total,
        recent_sales=recent,
        inventory_value=Decimal(str(value or 0)),
        low_stock=[f"{d.name} ({d.stock} left)" for d in low],
    )


def _chat_messages(snapshot: StoreSnapshot, data: dict) -> List[dict]:
    history = data.get("messages") or []
    if not isinstance(history, list) or not history:
        raise InvalidArgument("messages must be a non-empty list")

    messages = []
    for msg in history[-MAX_CHAT_TURNS:]:
        if not isinstance(msg, dict) or msg.get("role") not in ALLOWED_CHAT_ROLES:
            raise InvalidArgument("each message needs a role of 'user' or 'assistant'")
        content = msg.get("content")
        if not isinstance(content, str) or not content.strip():
            raise InvalidArgument("each message needs non-empty content")
        messages.append({"role": msg["role"], "content": content})

    system = (
        "You are an operations assistant for a pharmacy. Use the current store data below "
        "when answering. Keep answers short and in plain text.\n\n" + snapshot.describe()
    )
    return [{"role": "system", "content": system}] + messages


def _inventory_messages(snapshot: StoreSnapshot) -> List[dict]:
    prompt = (
        "Current operating data:\n" + snapshot.describe() + "\n\n"
        "Write a short plain-text summary covering urgent restocking, likely demand "
        "trends suggested by the shortages, and one efficiency tip for the pharmacist."
    )
    return [
        {"role": "system", "content": "You are a pharmacy inventory analyst."},
        {"role": "user", "content": prompt},
    ]


def _drug_info_messages(data: dict) -> List[dict]:
    name = (data.get("drugName") or "").strip()
    if not name:
        raise InvalidArgument("drugName is required")
    return [
        {"role": "system", "content": "You are a pharmacist's assistant."},
        {"role": "user", "content": f"In at most two sentences, give the main use and one common side effect of {name}."},
    ]


async def ask(db: Session, kind: str, data: dict) -> str:
    if kind == "chat":
        messages = _chat_messages(build_snapshot(db), data)
    elif kind == "inventory":
        messages = _inventory_messages(build_snapshot(db))
    elif kind == "drugInfo":
        messages = _drug_info_messages(data)
    else:
        raise InvalidArgument(f"Unknown request type: {kind}")

    logger.info("AI request type=%s messages=%d", kind, len(messages))
    return await chat_client.complete(messages)
