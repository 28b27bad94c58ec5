"""
Lead model - prospective participants tracked before screening.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Text, Uuid
from sqlalchemy.orm import Mapped

from .base import Base


class Lead(Base):
    __tablename__ = "leads"

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = Column(Text, nullable=False)
    phone: Mapped[Optional[str]] = Column(Text, nullable=True)
    was_called: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    patient_willing: Mapped[Optional[bool]] = Column(Boolean, nullable=True)
    scheduled_on: Mapped[Optional[date]] = Column(Date, nullable=True)
    lvef: Mapped[Optional[float]] = Column(Float, nullable=True)
    notes: Mapped[Optional[str]] = Column(Text, nullable=True)
    source_key: Mapped[Optional[str]] = Column(Text, nullable=True)
    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
