# backend/routes/users.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas.common import Envelope, ok
from schemas.user import UserResponse, UserUpdate
from utils.audit import client_ip, write_log
from utils.errors import InvalidArgument
from utils.hashing import get_password_hash
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


# Retrieve current authenticated user details
@router.get("/me", response_model=Envelope[UserResponse])
def me(current_user: User = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


# Update display name and/or password of the current user
@router.put("/me", response_model=Envelope[UserResponse])
def update_me(
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    name = (payload.name or "").strip()
    password = payload.password or ""
    if not name and not password:
        raise InvalidArgument("Nothing to update")

    changed = []
    if name:
        current_user.name = name
        changed.append("name")
    if password:
        current_user.password_hash = get_password_hash(password)
        changed.append("password")

    db.commit()
    db.refresh(current_user)
    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="users",
              ip=client_ip(request), meta={"fields": changed})
    return ok(UserResponse.model_validate(current_user), "Profile updated")
