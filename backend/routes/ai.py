# backend/routes/ai.py
from typing import Literal
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import Envelope, ok
from services import assistant
from utils.audit import client_ip, write_log
from utils.errors import AppError
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/ai", tags=["AI"])


class AiRequest(BaseModel):
    type: Literal["chat", "inventory", "drugInfo"]
    data: dict = Field(default_factory=dict)


@router.post("", response_model=Envelope[str])
async def ask_assistant(
    payload: AiRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        answer = await assistant.ask(db, payload.type, payload.data)
    except AppError as e:
        write_log(db, user_id=current_user.id, action="AI_" + payload.type.upper(), resource="ai",
                  status="FAIL", ip=client_ip(request), meta={"reason": e.message})
        raise

    write_log(db, user_id=current_user.id, action="AI_" + payload.type.upper(), resource="ai",
              ip=client_ip(request), meta={"chars": len(answer)})
    return ok(answer)
