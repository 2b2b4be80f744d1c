"""
Track Service
Saved tracks, publishing, likes and the public feed
"""

from typing import Any, Dict, List, Optional

import structlog

from musicgen_api.models.schemas import SaveTrackRequest
from musicgen_api.utils.errors import ForbiddenError, NotFoundError
from musicgen_api.utils.supabase_client import SupabaseStore

logger = structlog.get_logger(__name__)

FEED_LIMIT = 25


def derive_tags(genre: Optional[str], mood: Optional[str]) -> List[str]:
    """Lower-cased genre and mood, empties dropped"""
    return [value.lower() for value in (genre, mood) if value]


class TrackService:
    """Track operations scoped to the calling user"""

    def __init__(self, store: SupabaseStore):
        self.store = store

    async def save_track(self, user_id: str, request: SaveTrackRequest) -> Dict[str, Any]:
        track = await self.store.insert_track({
            "user_id": user_id,
            "title": request.title,
            "genre": request.genre,
            "mood": request.mood,
            "prompt": request.prompt or "",
            "duration": request.duration,
            "audio_url": request.audio_url,
            "image_url": request.image_url,
            "task_id": request.task_id,
            "tags": derive_tags(request.genre, request.mood),
        })
        logger.info("Track saved", user_id=user_id, track_id=track.get("id"))
        return track

    async def list_tracks(self, user_id: str) -> List[Dict[str, Any]]:
        return await self.store.list_tracks(user_id)

    async def _require_owner(self, user_id: str, track_id: str) -> None:
        owner_id = await self.store.get_track_owner(track_id)
        if owner_id is None:
            raise NotFoundError("Track not found")
        if owner_id != user_id:
            logger.warning("Ownership check failed", user_id=user_id, track_id=track_id)
            raise ForbiddenError("Not your track")

    async def publish_track(self, user_id: str, track_id: str) -> None:
        await self._require_owner(user_id, track_id)
        await self.store.publish_track(track_id, user_id)
        logger.info("Track published", user_id=user_id, track_id=track_id)

    async def delete_track(self, user_id: str, track_id: str) -> None:
        await self._require_owner(user_id, track_id)
        await self.store.delete_track(track_id)
        logger.info("Track deleted", user_id=user_id, track_id=track_id)

    async def toggle_like(self, user_id: str, track_id: str) -> bool:
        """
        Flip the caller's like on a track

        The like row is the source of truth. The counter RPC runs afterwards
        and a failure there is only logged, so the counter can drift.

        Returns:
            bool: True if the track is now liked
        """
        existing = await self.store.get_like(user_id, track_id)

        if existing:
            await self.store.remove_like(user_id, track_id)
            liked, delta = False, -1
        else:
            await self.store.add_like(user_id, track_id)
            liked, delta = True, 1

        try:
            await self.store.adjust_like_count(track_id, delta)
        except Exception as e:
            logger.error("Failed to update like counter", track_id=track_id, delta=delta, error=str(e))

        return liked

    async def get_feed(self, limit: int = FEED_LIMIT) -> List[Dict[str, Any]]:
        return await self.store.list_feed(min(limit, FEED_LIMIT))
