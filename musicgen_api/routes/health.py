"""
Health check and service descriptor routes
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from musicgen_api import __version__
from musicgen_api.utils.dependencies import SettingsDep

router = APIRouter()


@router.get("/health")
async def health_check(settings: SettingsDep):
    """Liveness plus configuration-presence flags"""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "supabase": bool(settings.supabase_url),
        "sunoApi": bool(settings.suno_api_key),
        "environment": settings.environment
    }


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "MusicGen AI API",
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "generate": "/api/generate-music",
            "taskStatus": "/api/task/:taskId",
            "tracks": "/api/tracks",
            "profile": "/api/profile",
            "feed": "/api/feed"
        }
    }
