"""
Generation Service
Quota checks, credit debit and Suno task handling
"""

from typing import Any, Dict, Optional

import structlog

from musicgen_api.models.schemas import GenerateMusicRequest, TaskStatusResponse
from musicgen_api.models.user import credit_counters, daily_limit_for
from musicgen_api.utils.errors import ForbiddenError, NotFoundError
from musicgen_api.utils.suno_client import SunoClient
from musicgen_api.utils.supabase_client import SupabaseStore

logger = structlog.get_logger(__name__)

VARIANT_FIELDS = ("audioUrl", "streamAudioUrl", "imageUrl", "title", "lyrics", "duration")


def compose_prompt(request: GenerateMusicRequest) -> Dict[str, str]:
    """
    Build the Suno prompt, style and title for a request

    Custom lyrics, when given, replace the generated prompt verbatim.
    """
    full_prompt = f"{request.genre} music with {request.mood} vibes. {request.prompt or ''}".strip()
    lyrics = (request.custom_lyrics or "").strip()
    return {
        "prompt": lyrics or full_prompt,
        "style": f"{request.genre}, {request.mood}",
        "title": f"{request.genre} {request.mood} Track",
    }


def _variant(song: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not song:
        return None
    return {field: song.get(field) for field in VARIANT_FIELDS}


def build_task_status(task_id: str, record: Dict[str, Any]) -> TaskStatusResponse:
    """Flatten a Suno record-info document into the client's status shape"""
    data = record.get("data") or {}
    response = data.get("response")

    output = None
    if response:
        songs = response.get("sunoData") or []
        output = {
            **(_variant(songs[0] if songs else None) or {}),
            "alternate": _variant(songs[1]) if len(songs) > 1 else None,
            "songs": songs,
        }

    return TaskStatusResponse(
        code=record.get("code"),
        message=record.get("msg") or "Success",
        data={
            "taskId": task_id,
            "status": data.get("status") or "PENDING",
            "output": output,
        },
    )


class GenerationService:
    """Music generation operations for an authenticated user"""

    def __init__(self, store: SupabaseStore, suno_client: SunoClient):
        self.store = store
        self.suno_client = suno_client

    async def generate(self, user_id: str, request: GenerateMusicRequest) -> Dict[str, Any]:
        """
        Start a Suno generation task and debit one credit

        The debit is written after the vendor accepts the task. A failed debit
        write is logged and the task id is still returned; the reported
        balance is computed from the row read before the call.

        Raises:
            NotFoundError: no user row for the caller
            ForbiddenError: daily quota reached or no credits left
            SunoAPIError: the vendor call failed
        """
        user = await self.store.get_user(user_id)
        if not user:
            logger.error("User not found", user_id=user_id)
            raise NotFoundError("User profile not found")

        counters = credit_counters(user)
        limit = daily_limit_for(user.get("current_plan"))

        if counters["used_points_today"] >= limit:
            logger.info("Daily limit reached", user_id=user_id, limit=limit)
            raise ForbiddenError("Daily limit reached", limit=limit, used=counters["used_points_today"])

        if counters["total_points"] <= 0:
            logger.info("No credits remaining", user_id=user_id)
            raise ForbiddenError("No credits remaining")

        composed = compose_prompt(request)

        logger.info(
            "Calling Suno API",
            user_id=user_id,
            genre=request.genre,
            mood=request.mood,
            instrumental=request.is_instrumental
        )

        task_id = await self.suno_client.create_generation(
            prompt=composed["prompt"],
            style=composed["style"],
            title=composed["title"],
            instrumental=request.is_instrumental
        )

        logger.info("Suno task created", user_id=user_id, task_id=task_id)

        await self._debit_credit(user_id, counters)

        return {
            "success": True,
            "task_id": task_id,
            "remaining_credits": counters["total_points"] - 1,
        }

    async def _debit_credit(self, user_id: str, counters: Dict[str, int]) -> None:
        try:
            await self.store.update_user(user_id, {
                "total_points": counters["total_points"] - 1,
                "used_points_today": counters["used_points_today"] + 1,
                "total_generations": counters["total_generations"] + 1,
            })
        except Exception as e:
            logger.error("Failed to deduct credit", user_id=user_id, error=str(e))

    async def get_task_status(self, task_id: str) -> TaskStatusResponse:
        record = await self.suno_client.get_task_record(task_id)
        return build_task_status(task_id, record)
