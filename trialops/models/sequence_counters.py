"""
SequenceCounter model - one row per human-readable ID sequence (S<n>, R<n>).
Locked during allocation so concurrent requests serialize.
"""

from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import Mapped

from .base import Base


class SequenceCounter(Base):
    __tablename__ = "sequence_counters"

    name: Mapped[str] = Column(Text, primary_key=True)
    last_value: Mapped[int] = Column(Integer, nullable=False, default=0)
