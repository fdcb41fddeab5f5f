"""
RefreshToken model: one row per refresh-token session (one per device/login).
Fields:
- token (unique opaque hex string)
- user_id (String(36)) - FK to users.id
- expires_at, is_active
- user_agent, ip_address (client metadata, stored as-is)
- created_at, updated_at, deleted_at

The stored is_active flag alone is not trusted: use compute_status() on every
use, since a row can be flagged active long after it expired.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base, SoftDeleteMixin, as_utc, utcnow


class SessionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    DEACTIVATED = "deactivated"


class RefreshToken(SoftDeleteMixin, BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    user_agent = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    def status_at(self, now: datetime | None = None) -> SessionStatus:
        return compute_status(self, now)

    def __repr__(self):
        return f"<RefreshToken id={self.id} user_id={self.user_id} active={self.is_active}>"


def compute_status(record: RefreshToken, now: datetime | None = None) -> SessionStatus:
    """Derive the session state from the row and the current time."""
    now = as_utc(now) if now is not None else utcnow()
    if not record.is_active or record.deleted_at is not None:
        return SessionStatus.DEACTIVATED
    if now >= as_utc(record.expires_at):
        return SessionStatus.EXPIRED
    return SessionStatus.ACTIVE
