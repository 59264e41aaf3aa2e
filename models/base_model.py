#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the User Auth API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- SoftDeleteMixin: rows are flagged, never removed

Timestamps are UTC. SQLite hands datetimes back without tzinfo, so anything
compared in Python goes through as_utc() first.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py
import models

from sqlalchemy import Boolean, Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at/updated_at are left to the DB defaults unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"


class SoftDeleteMixin:
    """
    Adds an is_deleted flag and deleted_at timestamp.
    Soft-deleted rows stay in the table and are filtered out by the store.
    """

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    def soft_delete(self):
        """Flag the row as deleted; the caller commits."""
        self.is_deleted = True
        self.deleted_at = utcnow()
        models.storage.new(self)
