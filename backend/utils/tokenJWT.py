# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
import logging
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from schemas.user import TokenData
from utils.errors import Unauthorized, PermissionDenied
from utils.hashing import verify_password

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported through our own envelope
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"iat": now, "exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def token_for_user(user: User) -> str:
    return create_access_token(
        data={"sub": str(user.id), "username": user.username, "role": user.role, "name": user.name}
    )


# Decode a token; None for anything expired, tampered with or malformed
def verify_token(token: str) -> Optional[TokenData]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        sub = payload.get("sub")
        if sub is None:
            return None
        return TokenData(
            user_id=int(sub),
            username=payload.get("username"),
            role=payload.get("role"),
            name=payload.get("name"),
        )
    except (JWTError, ValueError, ValidationError):
        return None


# Check credentials and issue a token for the matching user
def authenticate(db: Session, username: str, password: str) -> Tuple[User, str]:
    user = db.query(User).filter(User.username == username.strip()).first()
    # Same message for unknown user and wrong password
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for username=%s", username)
        raise Unauthorized("Invalid username or password")
    return user, token_for_user(user)


# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise Unauthorized("Missing bearer token")

    token_data = verify_token(credentials.credentials)
    if token_data is None:
        raise Unauthorized()

    user = db.query(User).filter(User.id == token_data.user_id).first()
    if user is None:
        raise Unauthorized()
    return user

# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    def _checker(current_user: User = Depends(get_current_user)):
        if allowed_roles and (current_user.role or "").lower() not in allowed_roles:
            raise PermissionDenied("Insufficient role for this operation")
        return current_user
    return _checker

admin_required = role_required("admin")
