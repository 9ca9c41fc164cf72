# radiocalico/services/errors.py
from __future__ import annotations


class RatingError(Exception):
    """Base class for everything the rating core raises on purpose."""


class ValidationError(RatingError):
    """Bad rating value or missing identifier. Never reaches a store."""

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__(", ".join(self.errors))


class PersistenceUnavailable(RatingError):
    """The active store could not complete the call (timeout, connection, disk, pool).

    Callers may retry; the server itself never does.
    """


class ConflictIgnored(RatingError):
    """A concurrent first insert lost the race and was turned into an update.

    Raised and handled inside the store layer only.
    """
