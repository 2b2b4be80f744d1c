"""
Profile Service
Read and patch the caller's user row
"""

from typing import Any, Dict, Optional

import structlog

from musicgen_api.models.user import PROTECTED_PROFILE_FIELDS
from musicgen_api.utils.supabase_client import SupabaseStore

logger = structlog.get_logger(__name__)


def strip_protected_fields(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Drop identity and credit fields so clients cannot tamper with them"""
    return {key: value for key, value in updates.items() if key not in PROTECTED_PROFILE_FIELDS}


class ProfileService:

    def __init__(self, store: SupabaseStore):
        self.store = store

    async def get_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.store.get_user(user_id)

    async def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        allowed = strip_protected_fields(updates)
        dropped = sorted(set(updates) - set(allowed))
        if dropped:
            logger.warning("Ignored protected profile fields", user_id=user_id, fields=dropped)

        if not allowed:
            return await self.store.get_user(user_id)

        user = await self.store.update_user(user_id, allowed)
        logger.info("Profile updated", user_id=user_id, fields=sorted(allowed))
        return user
