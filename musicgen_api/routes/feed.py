"""
Public feed route (no authentication)
"""

import structlog
from fastapi import APIRouter

from musicgen_api.services.track_service import TrackService
from musicgen_api.utils.dependencies import StoreDep
from musicgen_api.utils.errors import UpstreamError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("")
async def get_feed(store: StoreDep):
    """The 25 most recently published tracks with their owner's display name"""
    try:
        tracks = await TrackService(store).get_feed()
        return {"tracks": tracks}

    except Exception as e:
        logger.error("Fetch feed error", error=str(e))
        raise UpstreamError("Failed to fetch feed")
