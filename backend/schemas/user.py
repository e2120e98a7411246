from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from schemas.common import ORMBase

Role = Literal["admin", "pharmacist"]

# Schema for user authentication credentials
class UserLogin(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

# Schema for user registration requests
class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)
    role: Optional[str] = None  # anything but "admin" registers a pharmacist

# Partial profile update for the current user
class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None

# Output schema for user profile details
class UserResponse(ORMBase):
    id: int
    username: str
    name: str
    role: Role
    created_at: Optional[datetime] = None

# Login result: bearer token plus the profile it belongs to
class LoginResponse(ORMBase):
    token: str
    token_type: str = "bearer"
    user: UserResponse

# Schema for JWT payload contents
class TokenData(BaseModel):
    user_id: int
    username: Optional[str] = None
    role: Optional[Role] = None
    name: Optional[str] = None
