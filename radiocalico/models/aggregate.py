# radiocalico/models/aggregate.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Aggregate:
    """Like/dislike totals for one song. Derived from rows, never stored."""
    thumbs_up: int = 0
    thumbs_down: int = 0

    @property
    def total(self) -> int:
        return self.thumbs_up + self.thumbs_down

    def to_dict(self) -> dict:
        return {"thumbs_up": self.thumbs_up, "thumbs_down": self.thumbs_down}


@dataclass(frozen=True)
class RatingSnapshot:
    aggregate: Aggregate
    user_rating: Optional[int] = None

    def to_dict(self) -> dict:
        return {"ratings": self.aggregate.to_dict(), "userRating": self.user_rating}
