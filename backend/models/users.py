# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, func
from database import Base

ROLE_ADMIN = "admin"
ROLE_PHARMACIST = "pharmacist"

# Represents a staff account with authentication details and system role
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, CheckConstraint("role IN ('admin', 'pharmacist')"), nullable=False, default=ROLE_PHARMACIST)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == ROLE_ADMIN
