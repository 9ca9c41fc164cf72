# radiocalico/services/migration.py
from __future__ import annotations
import logging
from itertools import islice

from ..stores.base import RatingStore

log = logging.getLogger(__name__)


def copy_ratings(source: RatingStore, target: RatingStore, batch_size: int = 1000) -> dict:
    """
    Copy every rating row from ``source`` into ``target`` (typically SQLite -> PostgreSQL).
    Rows already in the target are updated, so the copy can be re-run.
    """
    stats = {"total": 0, "migrated": 0}
    rows = source.iter_ratings(batch_size=batch_size)
    while True:
        batch = list(islice(rows, batch_size))
        if not batch:
            break
        stats["total"] += len(batch)
        stats["migrated"] += target.import_ratings(batch)
        log.info("copied %d/%d ratings %s -> %s",
                 stats["migrated"], stats["total"], source.backend, target.backend)

    if stats["migrated"] != stats["total"]:
        log.warning("%d ratings were skipped", stats["total"] - stats["migrated"])
    return stats
