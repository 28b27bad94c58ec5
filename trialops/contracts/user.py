"""
Contracts for the authenticated caller.
"""

from typing import Optional

from trialops.models.enums import UserRoleEnum

from .base import BaseContract


class CurrentUser(BaseContract):
    """Identity and role of the caller, passed explicitly into service operations."""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.admin.value
