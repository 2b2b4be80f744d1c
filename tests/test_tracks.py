"""
Track Tests
Save, list, publish, like, delete and the public feed
"""

from unittest.mock import AsyncMock

import pytest

from musicgen_api.services.track_service import FEED_LIMIT, TrackService, derive_tags

from .conftest import AUTH_HEADERS, OTHER_USER_ID, USER_ID


class TestDeriveTags:
    def test_lowercases_genre_and_mood(self):
        assert derive_tags("Lofi", "Chill") == ["lofi", "chill"]

    def test_drops_missing_values(self):
        assert derive_tags(None, "Happy") == ["happy"]
        assert derive_tags("", None) == []


class TestSaveAndListTracks:
    def test_save_track(self, client, mock_store, sample_track):
        mock_store.insert_track = AsyncMock(return_value=sample_track)

        response = client.post("/api/tracks", headers=AUTH_HEADERS, json={
            "title": "Lofi Chill Track",
            "genre": "Lofi",
            "mood": "Chill",
            "duration": 120,
            "audio_url": "https://cdn.example.com/track.mp3",
            "image_url": "https://cdn.example.com/track.jpg",
            "task_id": "task-abc",
        })

        assert response.status_code == 200
        assert response.json() == {"success": True, "track": sample_track}

        row = mock_store.insert_track.call_args.args[0]
        assert row["user_id"] == USER_ID
        assert row["prompt"] == ""
        assert row["tags"] == ["lofi", "chill"]

    def test_save_track_ignores_client_user_id(self, client, mock_store, sample_track):
        mock_store.insert_track = AsyncMock(return_value=sample_track)

        client.post("/api/tracks", headers=AUTH_HEADERS, json={"title": "Song", "user_id": OTHER_USER_ID})

        assert mock_store.insert_track.call_args.args[0]["user_id"] == USER_ID

    def test_save_track_requires_title(self, client, mock_store):
        response = client.post("/api/tracks", headers=AUTH_HEADERS, json={"genre": "Lofi"})

        assert response.status_code == 400
        mock_store.insert_track.assert_not_called()

    def test_save_track_accepts_long_title(self, client, mock_store, sample_track):
        mock_store.insert_track = AsyncMock(return_value=sample_track)

        response = client.post("/api/tracks", headers=AUTH_HEADERS, json={"title": "T" * 500, "duration": 900})

        assert response.status_code == 200
        assert mock_store.insert_track.call_args.args[0]["title"] == "T" * 500

    def test_save_track_store_failure(self, client, mock_store):
        mock_store.insert_track = AsyncMock(side_effect=RuntimeError("insert failed"))

        response = client.post("/api/tracks", headers=AUTH_HEADERS, json={"title": "Song"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save track"}

    def test_list_tracks(self, client, mock_store, sample_track):
        mock_store.list_tracks = AsyncMock(return_value=[sample_track])

        response = client.get("/api/tracks", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"tracks": [sample_track]}
        mock_store.list_tracks.assert_awaited_once_with(USER_ID)

    def test_list_tracks_failure(self, client, mock_store):
        mock_store.list_tracks = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/api/tracks", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch tracks"}


class TestOwnership:
    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/tracks/track-789/publish"),
        ("DELETE", "/api/tracks/track-789"),
    ])
    def test_other_users_track_is_forbidden(self, client, mock_store, method, path):
        mock_store.get_track_owner = AsyncMock(return_value=OTHER_USER_ID)

        response = client.request(method, path, headers=AUTH_HEADERS)

        assert response.status_code == 403
        assert response.json() == {"error": "Not your track"}
        mock_store.publish_track.assert_not_called()
        mock_store.delete_track.assert_not_called()

    @pytest.mark.parametrize("method,path", [
        ("POST", "/api/tracks/missing/publish"),
        ("DELETE", "/api/tracks/missing"),
    ])
    def test_missing_track(self, client, mock_store, method, path):
        mock_store.get_track_owner = AsyncMock(return_value=None)

        response = client.request(method, path, headers=AUTH_HEADERS)

        assert response.status_code == 404
        assert response.json() == {"error": "Track not found"}
        mock_store.publish_track.assert_not_called()
        mock_store.delete_track.assert_not_called()

    def test_publish_own_track(self, client, mock_store):
        response = client.post("/api/tracks/track-789/publish", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        mock_store.publish_track.assert_awaited_once_with("track-789", USER_ID)

    def test_publish_failure(self, client, mock_store):
        mock_store.publish_track = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.post("/api/tracks/track-789/publish", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to publish"}

    def test_delete_own_track(self, client, mock_store):
        response = client.delete("/api/tracks/track-789", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        mock_store.delete_track.assert_awaited_once_with("track-789")


class TestLikes:
    @pytest.fixture
    def like_rows(self, mock_store):
        """Back the like methods with an in-memory set of (user, track) pairs"""
        rows = set()

        async def get_like(user_id, track_id):
            return {"user_id": user_id, "track_id": track_id} if (user_id, track_id) in rows else None

        async def add_like(user_id, track_id):
            rows.add((user_id, track_id))

        async def remove_like(user_id, track_id):
            rows.discard((user_id, track_id))

        mock_store.get_like = AsyncMock(side_effect=get_like)
        mock_store.add_like = AsyncMock(side_effect=add_like)
        mock_store.remove_like = AsyncMock(side_effect=remove_like)
        return rows

    def test_toggle_twice_returns_to_unliked(self, client, mock_store, like_rows):
        first = client.post("/api/tracks/track-789/like", headers=AUTH_HEADERS)
        assert first.json() == {"liked": True}
        assert (USER_ID, "track-789") in like_rows

        second = client.post("/api/tracks/track-789/like", headers=AUTH_HEADERS)
        assert second.json() == {"liked": False}
        assert not like_rows

        deltas = [call.args for call in mock_store.adjust_like_count.await_args_list]
        assert deltas == [("track-789", 1), ("track-789", -1)]

    def test_counter_failure_is_not_reported(self, client, mock_store, like_rows):
        mock_store.adjust_like_count = AsyncMock(side_effect=RuntimeError("rpc failed"))

        response = client.post("/api/tracks/track-789/like", headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"liked": True}

    def test_like_write_failure(self, client, mock_store):
        mock_store.add_like = AsyncMock(side_effect=RuntimeError("insert failed"))

        response = client.post("/api/tracks/track-789/like", headers=AUTH_HEADERS)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to toggle like"}
        mock_store.adjust_like_count.assert_not_called()


class TestFeed:
    def test_feed(self, client, mock_store):
        feed_rows = [
            {"id": "pub-2", "published_at": "2026-02-02T00:00:00+00:00",
             "tracks": {"id": "t2", "title": "Newer", "users": {"display_name": "DJ"}}},
            {"id": "pub-1", "published_at": "2026-01-01T00:00:00+00:00",
             "tracks": {"id": "t1", "title": "Older", "users": {"display_name": "DJ"}}},
        ]
        mock_store.list_feed = AsyncMock(return_value=feed_rows)

        response = client.get("/api/feed")

        assert response.status_code == 200
        assert response.json() == {"tracks": feed_rows}
        mock_store.list_feed.assert_awaited_once_with(FEED_LIMIT)

    def test_feed_failure(self, client, mock_store):
        mock_store.list_feed = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/api/feed")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch feed"}

    @pytest.mark.asyncio
    async def test_feed_limit_is_capped(self, mock_store):
        await TrackService(mock_store).get_feed(limit=500)
        mock_store.list_feed.assert_awaited_once_with(25)
