# radiocalico/services/rating_service.py
from __future__ import annotations
import logging
from typing import Mapping, Optional

from ..models.aggregate import Aggregate, RatingSnapshot
from ..stores.base import RatingStore
from .errors import ValidationError

log = logging.getLogger(__name__)

RATING_VALUES = (-1, 0, 1)


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _rating_value(rating) -> Optional[int]:
    """The rating as an int, or None when it is not one of -1, 0, 1. JSON 1.0 counts as 1."""
    # bool is an int subclass; True must not pass as a like
    if isinstance(rating, bool):
        return None
    if isinstance(rating, float) and rating.is_integer():
        rating = int(rating)
    if isinstance(rating, int) and rating in RATING_VALUES:
        return rating
    return None


def validate_rating_input(song_id, song_meta: Optional[Mapping], user_id, rating) -> list[str]:
    errors = []
    meta = song_meta or {}

    if not _clean(song_id):
        errors.append("Song ID is required")
    if not _clean(meta.get("artist")):
        errors.append("Artist is required")
    if not _clean(meta.get("title")):
        errors.append("Title is required")
    if not _clean(user_id):
        errors.append("User identifier is required")
    if _rating_value(rating) is None:
        errors.append("Rating must be 1 (like), -1 (dislike), or 0 (remove)")

    return errors


class RatingAggregator:
    """
    Maps a rating request onto the active store.

    The contract is literal set-or-clear: 1/-1 sets the listener's rating,
    0 clears it. Toggling ("tap like again to remove") is a client decision.
    """

    def __init__(self, store: RatingStore):
        self.store = store

    def rate(self, song_id: str, song_meta: Optional[Mapping], user_id: str, rating: int) -> Aggregate:
        errors = validate_rating_input(song_id, song_meta, user_id, rating)
        if errors:
            raise ValidationError(errors)

        song_id = song_id.strip()
        user_id = user_id.strip()
        rating = _rating_value(rating)

        if rating == 0:
            aggregate = self.store.remove_rating(song_id, user_id)
            log.info("rating cleared song=%s user=%s -> %s", song_id, user_id, aggregate)
        else:
            aggregate = self.store.upsert_rating(
                song_id, user_id, rating,
                artist=song_meta["artist"].strip(),
                title=song_meta["title"].strip(),
            )
            log.info("rating set song=%s user=%s value=%d -> %s", song_id, user_id, rating, aggregate)
        return aggregate

    def get_ratings(self, song_id: str, user_id: Optional[str] = None) -> RatingSnapshot:
        if not _clean(song_id):
            raise ValidationError("Song ID is required")
        song_id = song_id.strip()

        aggregate = self.store.get_aggregate(song_id)
        user_rating = None
        if _clean(user_id):
            user_rating = self.store.get_user_rating(song_id, user_id.strip())
        return RatingSnapshot(aggregate=aggregate, user_rating=user_rating)
