"""
Track Routes
Save, list, publish, like and delete tracks
"""

import structlog
from fastapi import APIRouter, HTTPException

from musicgen_api.models.schemas import SaveTrackRequest
from musicgen_api.services.track_service import TrackService
from musicgen_api.utils.dependencies import CurrentUser, StoreDep
from musicgen_api.utils.errors import UpstreamError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("")
async def save_track(
    request: SaveTrackRequest,
    current_user: CurrentUser,
    store: StoreDep
):
    """Persist a generated track for the caller"""
    logger.info("Saving track", user_id=current_user.id, title=request.title)

    try:
        track = await TrackService(store).save_track(current_user.id, request)
        return {"success": True, "track": track}

    except Exception as e:
        logger.error("Save track error", user_id=current_user.id, error=str(e))
        raise UpstreamError("Failed to save track")


@router.get("")
async def list_tracks(current_user: CurrentUser, store: StoreDep):
    """Caller's tracks, newest first"""
    try:
        tracks = await TrackService(store).list_tracks(current_user.id)
        return {"tracks": tracks}

    except Exception as e:
        logger.error("Fetch tracks error", user_id=current_user.id, error=str(e))
        raise UpstreamError("Failed to fetch tracks")


@router.post("/{track_id}/publish")
async def publish_track(track_id: str, current_user: CurrentUser, store: StoreDep):
    """Publish one of the caller's tracks to the public feed"""
    try:
        await TrackService(store).publish_track(current_user.id, track_id)
        return {"success": True}

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Publish track error", track_id=track_id, error=str(e))
        raise UpstreamError("Failed to publish")


@router.post("/{track_id}/like")
async def toggle_like(track_id: str, current_user: CurrentUser, store: StoreDep):
    """Like the track, or unlike it if the caller already does"""
    try:
        liked = await TrackService(store).toggle_like(current_user.id, track_id)
        return {"liked": liked}

    except Exception as e:
        logger.error("Toggle like error", track_id=track_id, error=str(e))
        raise UpstreamError("Failed to toggle like")


@router.delete("/{track_id}")
async def delete_track(track_id: str, current_user: CurrentUser, store: StoreDep):
    """Delete one of the caller's tracks"""
    try:
        await TrackService(store).delete_track(current_user.id, track_id)
        return {"success": True}

    except HTTPException:
        raise
    except Exception as e:
        logger.error("Delete track error", track_id=track_id, error=str(e))
        raise UpstreamError("Failed to delete track")
