from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

STATUS_SUCCESS = "SUCCESS"
STATUS_FAIL = "FAIL"

# Who did what through the API: logins, catalog changes, sales, assistant calls.
# Failed attempts are kept as well, with the reason in meta.
class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Null for anonymous requests (failed login, registration attempts)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(50), nullable=False, index=True)    # e.g. SALE_CREATE, DRUG_PURGE
    resource = Column(String(50), nullable=False, index=True)  # drugs, sales, auth, users, ai
    status = Column(String(20), nullable=False, default=STATUS_SUCCESS, index=True)
    ip = Column(String(64), nullable=True)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined")

    @property
    def username(self):
        return self.user.username if self.user else None
