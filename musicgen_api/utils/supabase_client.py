"""
Supabase Client
Token verification and table access for users, tracks, likes and the feed
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog
from supabase import AsyncClient, AuthApiError, acreate_client

logger = structlog.get_logger(__name__)

FEED_COLUMNS = """
    id,
    published_at,
    tracks (
        id, title, genre, mood, audio_url, image_url, plays, likes,
        users (display_name)
    )
"""


@dataclass
class AuthenticatedUser:
    """Identity resolved from a bearer token"""
    id: str
    email: Optional[str] = None


class SupabaseStore:
    """
    Supabase wrapper used by route handlers.

    Lifecycle:
        - Call start() during app startup (FastAPI lifespan)
        - Call stop() during app shutdown

    Every query method raises on a store error; callers decide whether the
    failure reaches the client.
    """

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self.client: Optional[AsyncClient] = None

    async def start(self):
        if self.client is not None:
            logger.warning("Supabase client already started")
            return
        self.client = await acreate_client(self.url, self.key)
        logger.info("Supabase client initialized", url=self.url)

    async def stop(self):
        self.client = None
        logger.info("Supabase client released")

    def _require_client(self) -> AsyncClient:
        if self.client is None:
            raise RuntimeError("Supabase client not available")
        return self.client

    @staticmethod
    def _first(response) -> Optional[Dict[str, Any]]:
        rows = response.data or []
        return rows[0] if rows else None

    # Auth

    async def verify_token(self, token: str) -> Optional[AuthenticatedUser]:
        """
        Verify a user access token with Supabase Auth

        Args:
            token: JWT access token

        Returns:
            AuthenticatedUser, or None when Supabase rejects the token

        Raises:
            Exception: when the verification call itself fails
        """
        client = self._require_client()
        try:
            response = await client.auth.get_user(token)
        except AuthApiError as e:
            logger.info("Token rejected by Supabase", error=str(e))
            return None

        if response is None or response.user is None:
            return None

        return AuthenticatedUser(id=response.user.id, email=response.user.email)

    # Users

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        response = await client.table("users").select("*").eq("id", user_id).limit(1).execute()
        return self._first(response)

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        response = await client.table("users").update(updates).eq("id", user_id).execute()
        return self._first(response)

    # Tracks

    async def insert_track(self, track: Dict[str, Any]) -> Dict[str, Any]:
        client = self._require_client()
        response = await client.table("tracks").insert(track).execute()
        row = self._first(response)
        if row is None:
            raise RuntimeError("Track insert returned no row")
        return row

    async def list_tracks(self, user_id: str) -> List[Dict[str, Any]]:
        client = self._require_client()
        response = await (
            client.table("tracks")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return response.data or []

    async def get_track_owner(self, track_id: str) -> Optional[str]:
        """Owner id of a track, or None when the track does not exist"""
        client = self._require_client()
        response = await client.table("tracks").select("user_id").eq("id", track_id).limit(1).execute()
        row = self._first(response)
        return row["user_id"] if row else None

    async def publish_track(self, track_id: str, user_id: str) -> None:
        """Flag the track as published and add it to the feed index"""
        client = self._require_client()
        await client.table("tracks").update({"is_published": True}).eq("id", track_id).execute()
        await client.table("published_tracks").insert({"track_id": track_id, "user_id": user_id}).execute()

    async def delete_track(self, track_id: str) -> None:
        client = self._require_client()
        await client.table("tracks").delete().eq("id", track_id).execute()

    # Likes

    async def get_like(self, user_id: str, track_id: str) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        response = await (
            client.table("track_likes")
            .select("*")
            .eq("user_id", user_id)
            .eq("track_id", track_id)
            .limit(1)
            .execute()
        )
        return self._first(response)

    async def add_like(self, user_id: str, track_id: str) -> None:
        client = self._require_client()
        await client.table("track_likes").insert({"user_id": user_id, "track_id": track_id}).execute()

    async def remove_like(self, user_id: str, track_id: str) -> None:
        client = self._require_client()
        await (
            client.table("track_likes")
            .delete()
            .eq("user_id", user_id)
            .eq("track_id", track_id)
            .execute()
        )

    async def adjust_like_count(self, track_id: str, delta: int) -> None:
        """Run the increment_likes / decrement_likes RPC"""
        client = self._require_client()
        function = "increment_likes" if delta > 0 else "decrement_likes"
        await client.rpc(function, {"track_id": track_id}).execute()

    # Feed

    async def list_feed(self, limit: int) -> List[Dict[str, Any]]:
        client = self._require_client()
        response = await (
            client.table("published_tracks")
            .select(FEED_COLUMNS)
            .order("published_at", desc=True)
            .limit(limit)
            .execute()
        )
        return response.data or []
