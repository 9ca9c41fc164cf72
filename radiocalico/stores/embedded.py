# radiocalico/stores/embedded.py
"""
Single-file SQLite rating store.

SQLite allows one writer at a time. Inside the process that is made explicit
with a lock around every write transaction, so threads never race each other
into SQLITE_BUSY; across processes the busy timeout bounds the wait.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from ..models.rating import EmbeddedBase, EmbeddedSongRating
from ..services.errors import PersistenceUnavailable
from .base import RatingStore

log = logging.getLogger(__name__)


class EmbeddedRatingStore(RatingStore):
    backend = "sqlite"

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"timeout": timeout, "check_same_thread": False},
        )
        event.listen(engine, "connect", _set_sqlite_pragmas)

        super().__init__(engine, EmbeddedSongRating.__table__)
        self.timeout = timeout
        self._write_lock = threading.Lock()
        log.info(f"Initialized EmbeddedRatingStore at {self.db_path}")

    def _insert(self):
        return sqlite_insert

    def _now(self):
        return datetime.utcnow()

    @contextmanager
    def _writing(self):
        if not self._write_lock.acquire(timeout=self.timeout):
            raise PersistenceUnavailable(f"SQLite writer lock not acquired within {self.timeout}s")
        try:
            yield
        finally:
            self._write_lock.release()

    def _is_unique_violation(self, exc: IntegrityError) -> bool:
        return "UNIQUE constraint failed" in str(exc.orig)

    def create_schema(self) -> None:
        with self._translate_errors("create_schema"), self._writing():
            EmbeddedBase.metadata.create_all(self.engine)
        log.info("SQLite rating schema ready")

    def check_connection(self) -> dict:
        status = super().check_connection()
        status["path"] = str(self.db_path)
        return status


def _set_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    # WAL lets readers proceed while the single writer holds the lock
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()
