#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the Pet Service API.

- UUID primary key (String(36)) with defaults
- created_by / updated_by audit columns holding user ids
- created_at / updated_at timestamps
- is_active flag: rows are deactivated, never hard deleted, and every
  read path filters on it

Notes:
- created_at is filled client side with microsecond precision; child collections
  are ordered by it. The server default (func.now(), CURRENT_TIMESTAMP on SQLite)
  covers rows inserted outside the ORM.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_by, updated_by, created_at, updated_at, is_active
    - touch() / deactivate() stamp the audit columns
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_by = Column(String(36), nullable=True)
    updated_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
    is_active = Column(Boolean, default=True, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at defaults to the current UTC time unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if user passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        if getattr(self, "is_active", None) is None:
            self.is_active = True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id} active={self.is_active}>"

    def touch(self, user_id: str | None = None):
        """Stamp updated_at / updated_by before an update is flushed."""
        self.updated_at = datetime.now(timezone.utc)
        if user_id:
            self.updated_by = user_id

    def deactivate(self, user_id: str | None = None):
        """Soft delete: the row stays but every active-only query skips it."""
        self.is_active = False
        self.touch(user_id)

