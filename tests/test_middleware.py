"""
Request pipeline tests: rate limiting, body size, validation and error handling
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from musicgen_api.main import create_app
from musicgen_api.utils.middleware import RATE_LIMIT_MESSAGE

from .conftest import AUTH_HEADERS


@pytest.fixture
def limited_client(settings, mock_store, mock_suno):
    settings = settings.model_copy(update={"rate_limit_max_requests": 2, "rate_limit_window_ms": 60000})
    return TestClient(create_app(settings, store=mock_store, suno_client=mock_suno))


class TestRateLimiting:
    def test_blocks_after_max_requests(self, limited_client, mock_store):
        assert limited_client.get("/api/feed").status_code == 200
        assert limited_client.get("/api/feed").status_code == 200

        response = limited_client.get("/api/feed")

        assert response.status_code == 429
        assert response.text == RATE_LIMIT_MESSAGE
        assert mock_store.list_feed.await_count == 2

    def test_window_is_shared_across_api_paths(self, limited_client):
        limited_client.get("/api/feed")
        limited_client.get("/api/profile", headers=AUTH_HEADERS)

        assert limited_client.get("/api/tracks", headers=AUTH_HEADERS).status_code == 429

    def test_non_api_paths_are_not_limited(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/health").status_code == 200

    def test_rate_limit_headers(self, limited_client):
        response = limited_client.get("/api/feed")

        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "1"

    def test_rejected_response_keeps_security_headers(self, limited_client):
        for _ in range(2):
            limited_client.get("/api/feed")

        response = limited_client.get("/api/feed")

        assert response.status_code == 429
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestBodyLimit:
    def test_oversized_body_is_rejected(self, settings, mock_store, mock_suno):
        settings = settings.model_copy(update={"max_body_bytes": 64})
        client = TestClient(create_app(settings, store=mock_store, suno_client=mock_suno))

        response = client.post(
            "/api/tracks",
            headers=AUTH_HEADERS,
            json={"title": "x" * 200},
        )

        assert response.status_code == 413
        assert response.json() == {"error": "Request entity too large"}
        mock_store.insert_track.assert_not_called()

    def test_streamed_body_without_length_is_rejected(self, settings, mock_store, mock_suno):
        settings = settings.model_copy(update={"max_body_bytes": 64})
        client = TestClient(create_app(settings, store=mock_store, suno_client=mock_suno))

        def chunks():
            yield b'{"title": "'
            for _ in range(50):
                yield b"x" * 100
            yield b'"}'

        response = client.post(
            "/api/tracks",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
            content=chunks(),
        )

        assert response.status_code == 413
        assert response.json() == {"error": "Request entity too large"}
        mock_store.insert_track.assert_not_called()

    def test_streamed_body_under_ceiling_is_accepted(self, settings, mock_store, mock_suno, sample_track):
        mock_store.insert_track = AsyncMock(return_value=sample_track)
        settings = settings.model_copy(update={"max_body_bytes": 64})
        client = TestClient(create_app(settings, store=mock_store, suno_client=mock_suno))

        def chunks():
            yield b'{"title": '
            yield b'"Song"}'

        response = client.post(
            "/api/tracks",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
            content=chunks(),
        )

        assert response.status_code == 200
        mock_store.insert_track.assert_awaited_once()

    def test_default_ceiling_is_ten_megabytes(self, settings):
        assert settings.max_body_bytes == 10 * 1024 * 1024

    def test_malformed_json_is_a_client_error(self, client, mock_store):
        response = client.post(
            "/api/tracks",
            headers={**AUTH_HEADERS, "Content-Type": "application/json"},
            content=b'{"title": ',
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        mock_store.insert_track.assert_not_called()


class TestUnhandledErrors:
    def _app_with_failing_route(self, settings, mock_store, mock_suno):
        app = create_app(settings, store=mock_store, suno_client=mock_suno)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("kaboom")

        return app

    def test_message_hidden_outside_development(self, settings, mock_store, mock_suno):
        app = self._app_with_failing_route(settings, mock_store, mock_suno)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_message_shown_in_development(self, settings, mock_store, mock_suno):
        settings = settings.model_copy(update={"environment": "development"})
        app = self._app_with_failing_route(settings, mock_store, mock_suno)
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "kaboom"}
