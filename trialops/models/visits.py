"""
Visit model - maps to the visits table.
One row per protocol visit (1..8) per participant.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, relationship

from .base import Base


class Visit(Base):
    __tablename__ = "visits"
    __table_args__ = (
        UniqueConstraint("participant_id", "visit_number", name="uq_visits_participant_visit_number"),
        CheckConstraint("visit_number BETWEEN 1 AND 8", name="ck_visits_visit_number_range"),
    )

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    participant_id: Mapped[uuid.UUID] = Column(
        Uuid, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    visit_number: Mapped[int] = Column(Integer, nullable=False)
    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    scheduled_on: Mapped[Optional[date]] = Column(Date, nullable=True)
    due_date: Mapped[Optional[date]] = Column(Date, nullable=True)
    visit_date: Mapped[Optional[date]] = Column(Date, nullable=True)
    voucher_given: Mapped[Optional[bool]] = Column(Boolean, nullable=True)
    clinical_data: Mapped[Optional[dict]] = Column(JSON, default=dict)
    documents: Mapped[Optional[dict]] = Column(JSON, default=dict)
    created_by: Mapped[Optional[str]] = Column(Text, nullable=True)

    # Relationships
    participant: Mapped["Participant"] = relationship("Participant", back_populates="visits")

    @property
    def is_completed(self) -> bool:
        return self.visit_date is not None
