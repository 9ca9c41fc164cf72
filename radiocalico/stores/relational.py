# radiocalico/stores/relational.py
"""
PostgreSQL rating store.

Connections come from a bounded pool (no overflow), and every statement runs
under a server-side statement_timeout. Concurrent first-time raters of the
same song are serialised by the unique index through INSERT ... ON CONFLICT.
"""
from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError

from ..models.rating import RelationalBase, SongRating
from .base import RatingStore

log = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


class RelationalRatingStore(RatingStore):
    backend = "postgres"

    def __init__(self, database_url: str, pool_size: int = 10, timeout: float = 5.0):
        url = make_url(database_url)
        engine = create_engine(
            url,
            pool_size=pool_size,
            max_overflow=0,
            pool_timeout=timeout,
            pool_pre_ping=True,
            connect_args={
                "connect_timeout": max(1, int(timeout)),
                "options": f"-c statement_timeout={int(timeout * 1000)}",
            },
        )
        super().__init__(engine, SongRating.__table__)
        log.info("Initialized RelationalRatingStore host=%s db=%s pool_size=%d",
                 url.host, url.database, pool_size)

    def _insert(self):
        return pg_insert

    def _is_unique_violation(self, exc: IntegrityError) -> bool:
        return getattr(exc.orig, "pgcode", None) == UNIQUE_VIOLATION

    def create_schema(self) -> None:
        with self._translate_errors("create_schema"):
            RelationalBase.metadata.create_all(self.engine)
        log.info("PostgreSQL rating schema ready")
