"""
Participant model - maps to the participants table.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped, relationship

from .base import Base


class Participant(Base):
    __tablename__ = "participants"

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    screening_id: Mapped[str] = Column(Text, nullable=False, unique=True)
    randomization_id: Mapped[Optional[str]] = Column(Text, nullable=True, unique=True)
    randomization_code: Mapped[Optional[str]] = Column(Text, nullable=True)
    screening_failure: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    first_name: Mapped[Optional[str]] = Column(Text, nullable=True)
    middle_name: Mapped[Optional[str]] = Column(Text, nullable=True)
    last_name: Mapped[Optional[str]] = Column(Text, nullable=True)
    initials: Mapped[Optional[str]] = Column(Text, nullable=True)
    phone: Mapped[Optional[str]] = Column(Text, nullable=True)
    alternate_phone: Mapped[Optional[str]] = Column(Text, nullable=True)
    age: Mapped[Optional[int]] = Column(Integer, nullable=True)
    sex: Mapped[Optional[str]] = Column(Text, nullable=True)
    address: Mapped[Optional[str]] = Column(Text, nullable=True)
    education: Mapped[Optional[str]] = Column(Text, nullable=True)
    occupation: Mapped[Optional[str]] = Column(Text, nullable=True)
    income: Mapped[Optional[Decimal]] = Column(Numeric(12, 2), nullable=True)
    ltfu: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    consent_withdrawn: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    created_by: Mapped[Optional[str]] = Column(Text, nullable=True)

    # Relationships
    visits: Mapped[List["Visit"]] = relationship(
        "Visit",
        back_populates="participant",
        order_by="Visit.visit_number",
        cascade="all, delete-orphan",
    )
