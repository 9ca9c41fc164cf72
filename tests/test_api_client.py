from __future__ import annotations

import asyncio
from unittest.mock import Mock

import pytest
import requests

from radiocalico.client.api import ApiError, ApiService
from radiocalico.models import Aggregate


def _response(status=200, body=None):
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = body if body is not None else {}
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    else:
        resp.raise_for_status.return_value = None
    return resp


def _service(resp=None, error=None):
    session = Mock()
    session.headers = {}
    if error is not None:
        session.request.side_effect = error
    else:
        session.request.return_value = resp
    return ApiService("http://radio.test/api/", timeout=3, session=session), session


def test_rate_song_posts_wire_format() -> None:
    api, session = _service(_response(body={"success": True, "ratings": {"thumbs_up": 3, "thumbs_down": 1}}))

    agg = asyncio.run(api.rate_song("song-42", "Song", "42", 1, "u1"))

    assert agg == Aggregate(3, 1)
    session.request.assert_called_once_with(
        "POST", "http://radio.test/api/songs/rate", timeout=3,
        json={"songId": "song-42", "artist": "Song", "title": "42", "rating": 1, "userIdentifier": "u1"},
    )


def test_get_song_ratings_parses_user_rating() -> None:
    body = {"success": True, "ratings": {"thumbs_up": 0, "thumbs_down": 2}, "userRating": -1}
    api, session = _service(_response(body=body))

    snapshot = asyncio.run(api.get_song_ratings("song 42", "u1"))

    assert snapshot.aggregate == Aggregate(0, 2)
    assert snapshot.user_rating == -1
    args, kwargs = session.request.call_args
    assert args == ("GET", "http://radio.test/api/songs/song%2042/ratings")
    assert kwargs["params"] == {"userIdentifier": "u1"}


def test_http_error_carries_server_message() -> None:
    body = {"success": False, "error": "Rating must be 1 (like), -1 (dislike), or 0 (remove)"}
    api, _ = _service(_response(status=400, body=body))

    with pytest.raises(ApiError) as exc:
        api.rate_song_sync("song-42", "Song", "42", 5, "u1")
    assert exc.value.status == 400
    assert "Rating must be" in str(exc.value)


def test_unavailable_store_is_api_error() -> None:
    api, _ = _service(_response(status=503, body={"success": False, "error": "Rating storage is temporarily unavailable"}))
    with pytest.raises(ApiError) as exc:
        api.get_song_ratings_sync("song-42")
    assert exc.value.status == 503


def test_network_failure_is_api_error() -> None:
    api, _ = _service(error=requests.ConnectionError("connection refused"))
    with pytest.raises(ApiError, match="Network error"):
        asyncio.run(api.rate_song("song-42", "Song", "42", 1, "u1"))


def test_success_false_is_api_error() -> None:
    api, _ = _service(_response(body={"success": False, "error": "nope"}))
    with pytest.raises(ApiError, match="nope"):
        api.get_song_ratings_sync("song-42")
