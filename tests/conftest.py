from __future__ import annotations

import os

import pytest
from sqlalchemy import delete

from radiocalico import create_app
from radiocalico.config import Config
from radiocalico.services.rating_service import RatingAggregator
from radiocalico.stores import EmbeddedRatingStore, RelationalRatingStore

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


@pytest.fixture
def sqlite_store(tmp_path):
    store = EmbeddedRatingStore(str(tmp_path / "ratings.db"), timeout=2.0)
    store.create_schema()
    try:
        yield store
    finally:
        store.close()


def _postgres_store():
    store = RelationalRatingStore(TEST_DATABASE_URL, pool_size=20, timeout=5.0)
    store.create_schema()
    with store.engine.begin() as conn:
        conn.execute(delete(store.table))
    return store


@pytest.fixture(params=[
    "sqlite",
    pytest.param("postgres", marks=pytest.mark.skipif(
        not TEST_DATABASE_URL, reason="TEST_DATABASE_URL not set")),
])
def store(request, tmp_path):
    """Every rating store backend; both must behave identically."""
    if request.param == "sqlite":
        backend = EmbeddedRatingStore(str(tmp_path / "store.db"), timeout=2.0)
        backend.create_schema()
    else:
        backend = _postgres_store()
    try:
        yield backend
    finally:
        if request.param == "postgres":
            with backend.engine.begin() as conn:
                conn.execute(delete(backend.table))
        backend.close()


@pytest.fixture
def aggregator(store) -> RatingAggregator:
    return RatingAggregator(store)


@pytest.fixture
def test_config(tmp_path):
    class TestConfig(Config):
        TESTING = True
        ENV = "testing"
        DATABASE_TYPE = "sqlite"
        DATABASE_FILE = str(tmp_path / "app.db")
        LOG_DIR = str(tmp_path / "logs")
    return TestConfig


@pytest.fixture
def app(test_config, sqlite_store):
    return create_app(test_config, store=sqlite_store)


@pytest.fixture
def client(app):
    return app.test_client()
