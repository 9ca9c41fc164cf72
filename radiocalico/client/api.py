# radiocalico/client/api.py
from __future__ import annotations
import asyncio
import logging
from typing import Optional
from urllib.parse import quote

import requests

from ..models.aggregate import Aggregate, RatingSnapshot
from ..services.errors import RatingError

log = logging.getLogger(__name__)


class ApiError(RatingError):
    """Rating API call failed: transport error, non-2xx, or success=false."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _aggregate_from(data: dict) -> Aggregate:
    ratings = data.get("ratings") or {}
    return Aggregate(
        thumbs_up=int(ratings.get("thumbs_up") or 0),
        thumbs_down=int(ratings.get("thumbs_down") or 0),
    )


class ApiService:
    """
    Client for the rating endpoints.

    Calls are made with a blocking requests.Session in a worker thread so the
    caller's event loop keeps running while a request is in flight.
    """

    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, url, e)
            raise ApiError(f"Network error: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}

        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or f"HTTP {resp.status_code}", status=resp.status_code) from e

        if not isinstance(data, dict) or not data.get("success", False):
            raise ApiError((data or {}).get("error") or "Unexpected response", status=resp.status_code)
        return data

    def rate_song_sync(self, song_id: str, artist: str, title: str, rating: int, user_id: str) -> Aggregate:
        data = self._request("POST", "/songs/rate", json={
            "songId": song_id,
            "artist": artist,
            "title": title,
            "rating": rating,
            "userIdentifier": user_id,
        })
        return _aggregate_from(data)

    def get_song_ratings_sync(self, song_id: str, user_id: Optional[str] = None) -> RatingSnapshot:
        params = {"userIdentifier": user_id} if user_id else None
        data = self._request("GET", f"/songs/{quote(song_id, safe='')}/ratings", params=params)
        return RatingSnapshot(aggregate=_aggregate_from(data), user_rating=data.get("userRating"))

    async def rate_song(self, song_id: str, artist: str, title: str, rating: int, user_id: str) -> Aggregate:
        return await asyncio.to_thread(self.rate_song_sync, song_id, artist, title, rating, user_id)

    async def get_song_ratings(self, song_id: str, user_id: Optional[str] = None) -> RatingSnapshot:
        return await asyncio.to_thread(self.get_song_ratings_sync, song_id, user_id)

    def close(self) -> None:
        self.session.close()
