# backend/routes/auth.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN, ROLE_PHARMACIST
from schemas import user as schemas
from schemas.common import Envelope, ok
from utils.audit import client_ip, write_log
from utils.errors import Conflict, Unauthorized
from utils.hashing import get_password_hash
from utils.tokenJWT import authenticate

router = APIRouter(prefix="/auth", tags=["Auth"])

# Register a new staff account
@router.post("/register", response_model=Envelope[schemas.UserResponse])
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    username = payload.username.strip()

    # Check for existing user
    existing = db.query(User).filter(func.lower(User.username) == username.lower()).first()
    if existing:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"username": username, "reason": "Username exists"})
        raise Conflict("Username already exists")

    role = ROLE_ADMIN if (payload.role or "").lower() == ROLE_ADMIN else ROLE_PHARMACIST
    user = User(
        username=username,
        password_hash=get_password_hash(payload.password),
        name=payload.name.strip(),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    write_log(db, user_id=user.id, action="REGISTER", resource="auth",
              ip=client_ip(request), meta={"username": username, "role": role})
    return ok(schemas.UserResponse.model_validate(user), "Registration successful")


# Authenticate user and return an access token
@router.post("/login", response_model=Envelope[schemas.LoginResponse])
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    try:
        user, token = authenticate(db, payload.username, payload.password)
    except Unauthorized:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"username": payload.username})
        raise

    write_log(db, user_id=user.id, action="LOGIN", resource="auth",
              ip=client_ip(request), meta={"username": user.username})
    return ok(
        schemas.LoginResponse(token=token, user=schemas.UserResponse.model_validate(user)),
        "Login successful",
    )
