"""
modules/sync/models.py - ORM models for the sync domain.

Owns tables: schedule_sheet_rows
"""

from sqlalchemy import Column, Integer, String, Text

from core.base import Base


class ScheduleSheetRow(Base):
    """One appended sheet row: (ISO timestamp, JSON-stringified schedule snapshot)."""
    __tablename__ = "schedule_sheet_rows"

    id = Column(Integer, primary_key=True)
    recorded_at = Column(String(40), nullable=False)   # column A
    snapshot = Column(Text, nullable=False)            # column B
