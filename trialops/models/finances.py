"""
Fund and Expense models - trial finance tracking.
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, Text, Uuid
from sqlalchemy.orm import Mapped

from .base import Base


class Fund(Base):
    __tablename__ = "funds"

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    amount: Mapped[Decimal] = Column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = Column(Text, nullable=False)
    file_src: Mapped[Optional[str]] = Column(Text, nullable=True)
    date_received: Mapped[date] = Column(Date, nullable=False)
    description: Mapped[str] = Column(Text, nullable=False, default="")
    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class Expense(Base):
    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = Column(Text, nullable=False)
    screening_id: Mapped[Optional[str]] = Column(Text, nullable=True)
    visit_number: Mapped[Optional[int]] = Column(Integer, nullable=True)
    category: Mapped[str] = Column(Text, nullable=False)
    amount: Mapped[Decimal] = Column(Numeric(12, 2), nullable=False)
    bill_src: Mapped[Optional[str]] = Column(Text, nullable=True)
    expense_date: Mapped[date] = Column("date", Date, nullable=False)
    purpose: Mapped[str] = Column(Text, nullable=False, default="")
    settled: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    paid_by: Mapped[str] = Column(Text, nullable=False)
    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
