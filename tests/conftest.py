"""
Pytest fixtures for MusicGen API tests
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from musicgen_api.config import Settings
from musicgen_api.main import create_app
from musicgen_api.utils.supabase_client import AuthenticatedUser

USER_ID = "user-123"
OTHER_USER_ID = "user-456"
AUTH_HEADERS = {"Authorization": "Bearer valid-token"}


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test."
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with test credentials"""
    return Settings(
        supabase_url="https://test-project.supabase.co",
        supabase_key="test-service-key",
        suno_base_url="https://suno.test",
        suno_api_key="test-suno-key",
        environment="testing",
        log_level="WARNING",
    )


@pytest.fixture
def sample_user() -> Dict[str, Any]:
    """User row as stored in Supabase"""
    return {
        "id": USER_ID,
        "email": "listener@example.com",
        "display_name": "Night Listener",
        "current_plan": "free",
        "total_points": 5,
        "used_points_today": 0,
        "total_generations": 7,
    }


@pytest.fixture
def sample_track() -> Dict[str, Any]:
    return {
        "id": "track-789",
        "user_id": USER_ID,
        "title": "Lofi Chill Track",
        "genre": "Lofi",
        "mood": "Chill",
        "prompt": "",
        "duration": 120,
        "audio_url": "https://cdn.example.com/track.mp3",
        "image_url": "https://cdn.example.com/track.jpg",
        "task_id": "task-abc",
        "tags": ["lofi", "chill"],
        "is_published": False,
        "likes": 0,
        "created_at": "2026-01-01T00:00:00+00:00",
    }


@pytest.fixture
def mock_store(sample_user):
    """Supabase store fake with every query as an AsyncMock"""
    store = MagicMock()
    store.verify_token = AsyncMock(
        return_value=AuthenticatedUser(id=USER_ID, email="listener@example.com")
    )
    store.get_user = AsyncMock(return_value=sample_user)
    store.update_user = AsyncMock(return_value=sample_user)
    store.insert_track = AsyncMock()
    store.list_tracks = AsyncMock(return_value=[])
    store.get_track_owner = AsyncMock(return_value=USER_ID)
    store.publish_track = AsyncMock()
    store.delete_track = AsyncMock()
    store.get_like = AsyncMock(return_value=None)
    store.add_like = AsyncMock()
    store.remove_like = AsyncMock()
    store.adjust_like_count = AsyncMock()
    store.list_feed = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_suno():
    """Suno client fake"""
    suno = MagicMock()
    suno.create_generation = AsyncMock(return_value="task-abc")
    suno.get_task_record = AsyncMock(return_value={"code": 200, "msg": "success", "data": {}})
    return suno


@pytest.fixture
def app(settings, mock_store, mock_suno):
    return create_app(settings, store=mock_store, suno_client=mock_suno)


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)
