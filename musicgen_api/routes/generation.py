"""
Generation Routes
Suno proxy: create generation tasks and poll their status
"""

import structlog
from fastapi import APIRouter, HTTPException

from musicgen_api.models.schemas import (
    GenerateMusicRequest, GenerateMusicResponse, TaskStatusResponse
)
from musicgen_api.services.generation_service import GenerationService
from musicgen_api.utils.dependencies import CurrentUser, StoreDep, SunoDep
from musicgen_api.utils.errors import UpstreamError
from musicgen_api.utils.suno_client import SunoAPIError

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/generate-music", response_model=GenerateMusicResponse)
async def generate_music(
    request: GenerateMusicRequest,
    current_user: CurrentUser,
    store: StoreDep,
    suno_client: SunoDep
):
    """
    Create a Suno generation task for the caller

    Enforces the plan's daily quota and the credit balance before calling
    Suno, then debits one credit.
    """
    logger.info(
        "Generate music request",
        user_id=current_user.id,
        genre=request.genre,
        mood=request.mood,
        duration=request.duration
    )

    try:
        return await GenerationService(store, suno_client).generate(current_user.id, request)

    except HTTPException:
        raise
    except SunoAPIError as e:
        logger.error("Generate music error", user_id=current_user.id, error=e.message)
        raise UpstreamError("Generation failed", message=e.message)
    except Exception as e:
        logger.error("Generate music error", user_id=current_user.id, error=str(e))
        raise UpstreamError("Generation failed", message=str(e))


@router.get("/task/{task_id}", response_model=TaskStatusResponse)
async def get_task_status(
    task_id: str,
    current_user: CurrentUser,
    suno_client: SunoDep,
    store: StoreDep
):
    """Poll Suno for a task's status and generated songs"""
    logger.info("Checking task status", task_id=task_id, user_id=current_user.id)

    try:
        return await GenerationService(store, suno_client).get_task_status(task_id)

    except Exception as e:
        logger.error("Task status error", task_id=task_id, error=str(e))
        raise UpstreamError("Failed to check status")
