#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Team Manager API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- SoftDeleteMixin for entities that are logically removed, never hard-deleted

Notes:
- Timestamps are always UTC. SQLite drops the offset on read, so use as_utc()
  before comparing a loaded value against utcnow().
- Persistence (add/commit) belongs to the stores, not the models.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes coming back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        Column defaults fill created_at/updated_at on insert.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if caller passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        """Human-friendly representation including id and fields."""
        return f"[{self.__class__.__name__}] ({self.id}) {self.__dict__}"


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. Soft-deleted rows stay in the table for audit
    and are excluded from every store lookup.
    IMPORTANT: Place this mixin BEFORE BaseModel in your class base list.

    Example:
        class User(SoftDeleteMixin, BaseModel, Base):
            __tablename__ = "users"
            ...
    """

    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def soft_delete(self):
        """Mark as deleted; the caller commits."""
        self.deleted_at = utcnow()
