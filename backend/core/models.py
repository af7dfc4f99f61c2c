"""
core/models.py - Core ORM models.

Owns tables: kv_store
"""

from sqlalchemy import Column, String, DateTime, LargeBinary
from sqlalchemy.sql import func

from core.base import Base


class KeyValueEntry(Base):
    """Key-value byte store backing the schedule snapshot (rmiSchedule, ...)."""
    __tablename__ = "kv_store"

    key = Column(String(100), primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
