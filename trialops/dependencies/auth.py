"""
Authentication dependencies: Auth0 JWT verification and role lookup.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trialops.config import get_settings
from trialops.contracts.user import CurrentUser
from trialops.core.auth0 import verify_auth0_token
from trialops.core.errors import PermissionDeniedError
from trialops.dependencies.db import get_db
from trialops.models.enums import UserRoleEnum
from trialops.models.user_roles import UserRole

logger = logging.getLogger(__name__)

# Make HTTPBearer optional when auth is disabled
security = HTTPBearer(auto_error=False)

EMAIL_CLAIMS = ("email", "https://trialops/email")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """
    Verify the Auth0 JWT and resolve the caller's role from ``user_roles``.

    Callers without a ``user_roles`` row are treated as staff. If
    AUTH_DISABLED=true, returns a mock user with ``AUTH_DISABLED_ROLE``.
    """
    settings = get_settings()

    # Bypass Auth0 when disabled (for local development and tests)
    if settings.auth_disabled:
        logger.warning("Auth0 disabled - using mock %s user", settings.auth_disabled_role)
        return CurrentUser(
            id="test-user-id",
            email="test@trialops.local",
            role=settings.auth_disabled_role,
            username="test-user",
        )

    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = await verify_auth0_token(credentials.credentials)
    except ValueError as e:
        logger.error("Auth0 token verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    role_row = (
        await db.execute(select(UserRole).where(UserRole.user_id == user_id))
    ).scalars().first()

    return CurrentUser(
        id=user_id,
        email=next((payload[claim] for claim in EMAIL_CLAIMS if payload.get(claim)), None),
        role=role_row.role if role_row else UserRoleEnum.staff.value,
        username=role_row.username if role_row else None,
    )


def require_admin(user: Optional[CurrentUser], action: str) -> None:
    """Raise ``PermissionDeniedError`` unless ``user`` is an administrator."""
    if user is None or not user.is_admin:
        raise PermissionDeniedError(f"Only administrators can {action}")
