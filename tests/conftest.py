"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from linkblog.common.logging_config import setup_logging
from linkblog.database.sqlite import SQLiteLinkStore
from linkblog.feed import FeedMaterializer
from linkblog.service import LinkblogService
from web_app import create_app

BASE_URL = "http://links.example.org"


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def store(tmp_path, logger):
    """Create a SQLite link store in a temporary directory."""
    return SQLiteLinkStore(db_config=str(tmp_path / "linkblog.db"), logger=logger)


@pytest.fixture
def service(store, logger):
    """Create service instance."""
    return LinkblogService(store=store, logger=logger)


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def feed(store, work_dir, logger):
    """Create feed materializer writing into work_dir."""
    return FeedMaterializer(
        store=store,
        work_dir=str(work_dir),
        public_base_url=BASE_URL,
        feed_limit=5,
        stale_seconds=1800,
        logger=logger,
    )


@pytest.fixture
def config(tmp_path):
    return Config(
        database_url=str(tmp_path / "linkblog.db"),
        pretty_addr=BASE_URL,
        feed_limit=5,
    )


@pytest.fixture
def app(store, service, feed, config):
    """Create test FastAPI app."""
    return create_app(store=store, service=service, feed=feed, config=config)


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_links():
    """Sample (url, description, created_at) triples, oldest first."""
    start = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    return [
        ("https://example.com/test", "An example page", start),
        ("https://github.com/user/repo", "A repository", start + timedelta(hours=1)),
        ("https://stackoverflow.com/questions/123456", "A question", start + timedelta(hours=2)),
    ]
