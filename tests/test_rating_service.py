from __future__ import annotations

import pytest

from radiocalico.models import Aggregate
from radiocalico.services.errors import ValidationError
from radiocalico.services.rating_service import RatingAggregator, validate_rating_input

META = {"artist": "Song", "title": "42"}


class _RecordingStore:
    """Fails the test if the aggregator ever reaches the store."""

    def __getattr__(self, name):
        raise AssertionError(f"store.{name} called for invalid input")


def test_song_42_walkthrough(aggregator) -> None:
    agg = aggregator.rate("song-42", META, "u1", 1)
    assert agg == Aggregate(thumbs_up=1, thumbs_down=0)
    assert aggregator.get_ratings("song-42", "u1").user_rating == 1

    agg = aggregator.rate("song-42", META, "u1", 0)
    assert agg == Aggregate(0, 0)
    assert aggregator.get_ratings("song-42", "u1").user_rating is None

    agg = aggregator.rate("song-42", META, "u1", -1)
    assert agg == Aggregate(0, 1)
    assert aggregator.get_ratings("song-42", "u1").user_rating == -1


def test_new_rating_increments_only_its_bucket(aggregator) -> None:
    aggregator.rate("song-1", META, "u1", 1)
    aggregator.rate("song-1", META, "u2", -1)

    before = aggregator.get_ratings("song-1").aggregate
    after = aggregator.rate("song-1", META, "u3", -1)

    assert after.thumbs_down == before.thumbs_down + 1
    assert after.thumbs_up == before.thumbs_up


def test_switching_value_never_double_counts(aggregator) -> None:
    aggregator.rate("song-1", META, "u1", -1)
    agg = aggregator.rate("song-1", META, "u1", 1)
    assert agg == Aggregate(1, 0)


def test_clear_without_prior_rating_is_noop(aggregator) -> None:
    aggregator.rate("song-1", META, "u2", 1)
    assert aggregator.rate("song-1", META, "u1", 0) == Aggregate(1, 0)


def test_repeated_value_is_not_a_toggle(aggregator) -> None:
    first = aggregator.rate("song-1", META, "u1", 1)
    second = aggregator.rate("song-1", META, "u1", 1)
    assert first == second == Aggregate(1, 0)


def test_ids_are_trimmed(aggregator) -> None:
    aggregator.rate("  song-1 ", META, " u1 ", 1)
    assert aggregator.get_ratings("song-1", "u1").user_rating == 1


@pytest.mark.parametrize("song_id, meta, user_id, rating, message", [
    ("", META, "u1", 1, "Song ID is required"),
    ("song-1", META, "   ", 1, "User identifier is required"),
    ("song-1", {"title": "42"}, "u1", 1, "Artist is required"),
    ("song-1", {"artist": "Song"}, "u1", 1, "Title is required"),
    ("song-1", META, "u1", 2, "Rating must be"),
    ("song-1", META, "u1", "1", "Rating must be"),
    ("song-1", META, "u1", True, "Rating must be"),
    ("song-1", META, "u1", None, "Rating must be"),
    ("song-1", META, "u1", 0.5, "Rating must be"),
])
def test_invalid_input_never_reaches_store(song_id, meta, user_id, rating, message) -> None:
    aggregator = RatingAggregator(_RecordingStore())
    with pytest.raises(ValidationError) as exc:
        aggregator.rate(song_id, meta, user_id, rating)
    assert message in str(exc.value)


def test_validation_collects_every_problem() -> None:
    errors = validate_rating_input(None, None, None, 5)
    assert len(errors) == 5


def test_get_ratings_requires_song_id() -> None:
    with pytest.raises(ValidationError):
        RatingAggregator(_RecordingStore()).get_ratings("  ")


def test_get_ratings_without_user(aggregator) -> None:
    aggregator.rate("song-1", META, "u1", 1)
    snapshot = aggregator.get_ratings("song-1", None)
    assert snapshot.aggregate == Aggregate(1, 0)
    assert snapshot.user_rating is None


@pytest.mark.parametrize("rating, expected", [(1.0, Aggregate(1, 0)), (-1.0, Aggregate(0, 1))])
def test_integral_float_rating_is_accepted(aggregator, rating, expected) -> None:
    # JSON clients may send 1.0 for 1
    assert aggregator.rate("song-1", META, "u1", rating) == expected
    assert aggregator.get_ratings("song-1", "u1").user_rating == int(rating)

    assert aggregator.rate("song-1", META, "u1", 0.0) == Aggregate(0, 0)
