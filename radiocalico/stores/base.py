# radiocalico/stores/base.py
"""
Shared behaviour of the rating stores.

Both backends keep one row per (song_id, user_identifier) and derive the
like/dislike totals from those rows on every call. Subclasses only supply the
table, the dialect-specific INSERT construct and the few things their engines
do differently (locking, timestamps, how a unique violation is reported).
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager, nullcontext
from typing import Iterable, Iterator, Optional

from sqlalchemy import Table, case, delete, func, select, text, update
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..models.aggregate import Aggregate
from ..services.errors import ConflictIgnored, PersistenceUnavailable, ValidationError

log = logging.getLogger(__name__)

STORED_VALUES = (-1, 1)


class RatingStore(ABC):
    backend = "base"

    def __init__(self, engine: Engine, table: Table):
        self.engine = engine
        self.table = table

    # --- backend hooks ---

    @abstractmethod
    def _insert(self):
        """Dialect INSERT construct supporting ``on_conflict_do_update``."""

    @abstractmethod
    def _is_unique_violation(self, exc: IntegrityError) -> bool:
        ...

    @abstractmethod
    def create_schema(self) -> None:
        ...

    def _now(self):
        return func.now()

    def _writing(self):
        """Held around every write transaction."""
        return nullcontext()

    @contextmanager
    def _translate_errors(self, operation: str):
        try:
            yield
        except SQLAlchemyError as e:
            log.error("%s store: %s failed: %s", self.backend, operation, e)
            raise PersistenceUnavailable(f"{operation} failed: {e.__class__.__name__}") from e

    # --- contract ---

    def upsert_rating(self, song_id: str, user_id: str, value: int,
                      artist: Optional[str] = None, title: Optional[str] = None) -> Aggregate:
        if value not in STORED_VALUES or isinstance(value, bool):
            raise ValidationError(f"Stored rating must be 1 or -1, got {value!r}")

        with self._translate_errors("upsert_rating"), self._writing():
            try:
                with self.engine.begin() as conn:
                    self._execute_upsert(conn, song_id, user_id, value, artist, title)
                    return self._aggregate(conn, song_id)
            except ConflictIgnored:
                log.debug("insert race on %s/%s resolved as update", song_id, user_id)
                return self._resolve_conflict(song_id, user_id, value, artist, title)

    def remove_rating(self, song_id: str, user_id: str) -> Aggregate:
        t = self.table
        with self._translate_errors("remove_rating"), self._writing():
            with self.engine.begin() as conn:
                result = conn.execute(
                    delete(t).where(t.c.song_id == song_id, t.c.user_identifier == user_id)
                )
                if not result.rowcount:
                    log.debug("remove_rating: no row for %s/%s", song_id, user_id)
                return self._aggregate(conn, song_id)

    def get_aggregate(self, song_id: str) -> Aggregate:
        with self._translate_errors("get_aggregate"):
            with self.engine.connect() as conn:
                return self._aggregate(conn, song_id)

    def get_user_rating(self, song_id: str, user_id: str) -> Optional[int]:
        t = self.table
        with self._translate_errors("get_user_rating"):
            with self.engine.connect() as conn:
                value = conn.execute(
                    select(t.c.rating).where(t.c.song_id == song_id, t.c.user_identifier == user_id)
                ).scalar_one_or_none()
        return int(value) if value is not None else None

    # --- maintenance ---

    def check_connection(self) -> dict:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {"connected": True, "type": self.backend}
        except SQLAlchemyError as e:
            log.warning("%s store: connection check failed: %s", self.backend, e)
            return {"connected": False, "type": self.backend, "error": str(e)}

    def iter_ratings(self, batch_size: int = 1000) -> Iterator[dict]:
        t = self.table
        cols = [t.c.song_id, t.c.user_identifier, t.c.artist, t.c.title,
                t.c.rating, t.c.created_at, t.c.updated_at]
        with self._translate_errors("iter_ratings"):
            with self.engine.connect() as conn:
                result = conn.execute(select(*cols).order_by(t.c.created_at))
                for rows in result.mappings().partitions(batch_size):
                    for row in rows:
                        yield dict(row)

    def import_ratings(self, rows: Iterable[dict]) -> int:
        """Upsert exported rows, keeping their timestamps. Returns the number written."""
        count = 0
        with self._translate_errors("import_ratings"), self._writing():
            with self.engine.begin() as conn:
                for row in rows:
                    if row.get("rating") not in STORED_VALUES:
                        log.warning("import_ratings: skipping %s/%s with rating %r",
                                    row.get("song_id"), row.get("user_identifier"), row.get("rating"))
                        continue
                    stmt = self._insert()(self.table).values(**row)
                    conn.execute(stmt.on_conflict_do_update(
                        index_elements=[self.table.c.song_id, self.table.c.user_identifier],
                        set_={"rating": stmt.excluded.rating, "updated_at": stmt.excluded.updated_at},
                    ))
                    count += 1
        log.info("%s store: imported %d ratings", self.backend, count)
        return count

    def close(self) -> None:
        self.engine.dispose()

    # --- internals ---

    def upsert_statement(self, song_id: str, user_id: str, value: int,
                         artist: Optional[str] = None, title: Optional[str] = None):
        t = self.table
        stmt = self._insert()(t).values(
            song_id=song_id, user_identifier=user_id, artist=artist, title=title, rating=value,
        )
        return stmt.on_conflict_do_update(
            index_elements=[t.c.song_id, t.c.user_identifier],
            set_={
                "rating": stmt.excluded.rating,
                "artist": func.coalesce(stmt.excluded.artist, t.c.artist),
                "title": func.coalesce(stmt.excluded.title, t.c.title),
                "updated_at": self._now(),
            },
        )

    def _resolve_conflict(self, song_id, user_id, value, artist, title) -> Aggregate:
        t = self.table
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(t)
                    .where(t.c.song_id == song_id, t.c.user_identifier == user_id)
                    .values(rating=value, updated_at=self._now())
                )
                if not result.rowcount:
                    # the conflicting row was removed in between; insert it once more
                    log.debug("row for %s/%s gone before update, retrying upsert", song_id, user_id)
                    self._execute_upsert(conn, song_id, user_id, value, artist, title)
                return self._aggregate(conn, song_id)
        except ConflictIgnored as e:
            raise PersistenceUnavailable(f"upsert_rating conflict on {song_id}/{user_id} not resolved") from e

    def _execute_upsert(self, conn: Connection, song_id, user_id, value, artist, title) -> None:
        try:
            conn.execute(self.upsert_statement(song_id, user_id, value, artist, title))
        except IntegrityError as e:
            if self._is_unique_violation(e):
                raise ConflictIgnored(f"{song_id}/{user_id}") from e
            raise

    def _aggregate(self, conn: Connection, song_id: str) -> Aggregate:
        t = self.table
        up, down = conn.execute(
            select(
                func.count(case((t.c.rating == 1, 1))),
                func.count(case((t.c.rating == -1, 1))),
            ).where(t.c.song_id == song_id)
        ).one()
        return Aggregate(thumbs_up=int(up or 0), thumbs_down=int(down or 0))
