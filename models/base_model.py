#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the Todo API.

- Auto-increment integer primary key
- created_at / updated_at timestamps (naive UTC)
- SoftDeleteMixin adding deleted_at; soft-deleted rows are filtered out by
  every store query through the `active()` helper

Notes:
- Timestamps are set on the Python side so that a freshly created object
  carries the same values the database will return on the next read.
- SoftDelete: put mixin FIRST in your model's inheritance list.
  Example:
    class Todo(SoftDeleteMixin, BaseModel, Base): ...
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import declarative_base

from utils.security import utcnow

# Declarative base for all models
Base = declarative_base()


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    - kwargs constructor that fills the timestamps when not given
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        now = utcnow()
        if getattr(self, "created_at", None) is None:
            self.created_at = now
        if getattr(self, "updated_at", None) is None:
            self.updated_at = now

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"


class SoftDeleteMixin:
    """
    Adds a deleted_at timestamp. A non-null value hides the row from all
    normal queries.
    """

    deleted_at = Column(DateTime, nullable=True, index=True)

    @classmethod
    def active(cls):
        """Filter criterion selecting rows that are not soft-deleted."""
        return cls.deleted_at.is_(None)

    def soft_delete(self):
        """Mark the instance deleted; the caller commits."""
        self.deleted_at = utcnow()
