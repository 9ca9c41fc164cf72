from collections.abc import Mapping
import logging

from .base import RatingStore
from .embedded import EmbeddedRatingStore
from .relational import RelationalRatingStore

log = logging.getLogger(__name__)


def build_store(config: Mapping) -> RatingStore:
    """Pick the one store this process will use, from DATABASE_TYPE."""
    kind = (config.get("DATABASE_TYPE") or "sqlite").strip().lower()
    timeout = float(config.get("DB_TIMEOUT_SECONDS", 5))

    if kind in {"sqlite", "embedded"}:
        store = EmbeddedRatingStore(config.get("DATABASE_FILE", "database/radiocalico.db"), timeout=timeout)
    elif kind in {"postgres", "postgresql", "relational"}:
        store = RelationalRatingStore(
            config["DATABASE_URL"],
            pool_size=int(config.get("DB_POOL_SIZE", 10)),
            timeout=timeout,
        )
    else:
        raise ValueError(f"Unknown DATABASE_TYPE: {kind!r}")

    log.info("Rating store backend: %s", store.backend)
    return store
