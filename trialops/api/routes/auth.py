"""
Authentication routes
"""

from fastapi import APIRouter, Depends

from trialops.contracts.user import CurrentUser
from trialops.dependencies.auth import get_current_user

router = APIRouter()


@router.get("/me", response_model=CurrentUser)
async def get_me(user: CurrentUser = Depends(get_current_user)):
    """
    Return the caller's identity and resolved role.
    """
    return user
