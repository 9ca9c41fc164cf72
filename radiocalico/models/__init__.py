from .aggregate import Aggregate, RatingSnapshot
from .rating import EmbeddedSongRating, SongRating
