"""
UserRole model - maps identity-provider subjects to an application role.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Text, Uuid
from sqlalchemy.orm import Mapped

from .base import Base


class UserRole(Base):
    __tablename__ = "user_roles"

    id: Mapped[uuid.UUID] = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = Column(Text, nullable=False, unique=True)
    role: Mapped[str] = Column(Text, nullable=False, default="staff")
    username: Mapped[Optional[str]] = Column(Text, nullable=True)
    created_at: Mapped[Optional[datetime]] = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
