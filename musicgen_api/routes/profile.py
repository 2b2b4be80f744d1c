"""
Profile Routes
Fetch and update the caller's user row
"""

import structlog
from fastapi import APIRouter, HTTPException

from musicgen_api.models.schemas import ProfileUpdateRequest
from musicgen_api.services.profile_service import ProfileService
from musicgen_api.utils.dependencies import CurrentUser, StoreDep
from musicgen_api.utils.errors import NotFoundError, UpstreamError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("")
async def get_profile(current_user: CurrentUser, store: StoreDep):
    """Caller's profile, including plan and credit balance"""
    try:
        user = await ProfileService(store).get_profile(current_user.id)

    except Exception as e:
        logger.error("Fetch profile error", user_id=current_user.id, error=str(e))
        raise UpstreamError("Failed to fetch profile")

    if not user:
        raise NotFoundError("User profile not found")

    return {"user": user}


@router.patch("")
async def update_profile(
    request: ProfileUpdateRequest,
    current_user: CurrentUser,
    store: StoreDep
):
    """
    Update the caller's profile

    id, email and both credit fields are ignored if sent.
    """
    try:
        user = await ProfileService(store).update_profile(current_user.id, request.patch())

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Update profile error", user_id=current_user.id, error=str(e))
        raise UpstreamError("Failed to update profile")

    if not user:
        raise NotFoundError("User profile not found")

    return {"user": user}
