"""Routine model."""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin


def _new_id() -> str:
    return str(uuid.uuid4())


class Routine(Base, TimestampMixin):
    """A user's recurring checklist stored as one document-like row."""

    __tablename__ = "routines"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(String(2000), nullable=False, default="")
    group = Column(String(100), nullable=True, index=True)
    frequency = Column(String(20), nullable=False, default="daily")  # daily | weekly | monthly
    # Steps: [{"id": "...", "title": "Stretch", "completed": false, "order": 0}, ...]
    steps = Column(JSON, nullable=False, default=list)
    # Completion dates: ["2025-01-06", "2025-01-07", ...]
    completed_dates = Column(JSON, nullable=False, default=list)
    streak = Column(Integer, nullable=False, default=0)
    last_completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    owner = relationship("User", back_populates="routines")
