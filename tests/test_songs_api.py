from __future__ import annotations

import pytest

from radiocalico import create_app
from radiocalico.services.errors import PersistenceUnavailable
from radiocalico.stores import EmbeddedRatingStore


def _rate(client, rating, song_id="song-42", user="u1"):
    return client.post("/api/songs/rate", json={
        "songId": song_id,
        "artist": "Song",
        "title": "42",
        "rating": rating,
        "userIdentifier": user,
    })


class _DownStore:
    def upsert_rating(self, *args, **kwargs):
        raise PersistenceUnavailable("upsert_rating failed: OperationalError")

    remove_rating = get_aggregate = get_user_rating = upsert_rating

    def check_connection(self):
        return {"connected": False, "type": "sqlite", "error": "unable to open database file"}


class _BrokenStore(_DownStore):
    def get_aggregate(self, song_id):
        raise RuntimeError("bug")


def test_rate_returns_fresh_totals(client) -> None:
    resp = _rate(client, 1)
    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "ratings": {"thumbs_up": 1, "thumbs_down": 0}}

    resp = _rate(client, 0)
    assert resp.get_json()["ratings"] == {"thumbs_up": 0, "thumbs_down": 0}


def test_read_includes_user_rating(client) -> None:
    _rate(client, -1)
    _rate(client, 1, user="u2")

    body = client.get("/api/songs/song-42/ratings?userIdentifier=u1").get_json()
    assert body["success"] is True
    assert body["ratings"] == {"thumbs_up": 1, "thumbs_down": 1}
    assert body["userRating"] == -1

    body = client.get("/api/songs/song-42/ratings").get_json()
    assert body["userRating"] is None


def test_validation_error_is_400(client) -> None:
    resp = _rate(client, 7)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["success"] is False
    assert "Rating must be" in body["error"]


def test_missing_body_is_400(client) -> None:
    resp = client.post("/api/songs/rate", data="not json", content_type="text/plain")
    assert resp.status_code == 400
    assert "Song ID is required" in resp.get_json()["error"]


@pytest.mark.parametrize("body", [[1], "rate", 5])
def test_non_object_body_is_400(client, body) -> None:
    resp = client.post("/api/songs/rate", json=body)
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "Request body must be a JSON object"}


def test_store_failure_is_503(test_config) -> None:
    client = create_app(test_config, store=_DownStore()).test_client()

    resp = _rate(client, 1)
    assert resp.status_code == 503
    assert resp.get_json() == {"success": False, "error": "Rating storage is temporarily unavailable"}

    assert client.get("/api/songs/song-42/ratings").status_code == 503


def test_unexpected_error_is_generic_500(test_config) -> None:
    client = create_app(test_config, store=_BrokenStore()).test_client()
    resp = client.get("/api/songs/song-42/ratings")
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "error": "Internal server error"}


def test_unknown_route_is_json_404(client) -> None:
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_health(client, test_config) -> None:
    body = client.get("/api/health").get_json()
    assert body["status"] == "healthy"
    assert body["database"]["type"] == "sqlite"

    down = create_app(test_config, store=_DownStore()).test_client()
    resp = down.get("/api/health")
    assert resp.status_code == 503
    assert resp.get_json()["status"] == "unhealthy"


def test_create_app_builds_configured_store(test_config) -> None:
    app = create_app(test_config)
    store = app.extensions["rating_store"]
    try:
        assert isinstance(store, EmbeddedRatingStore)
        assert str(store.db_path) == test_config.DATABASE_FILE
        assert _rate(app.test_client(), 1).status_code == 200
    finally:
        store.close()
