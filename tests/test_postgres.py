"""Tests for the PostgreSQL link store.

Set LINKBLOG_TEST_POSTGRES_URL to a disposable database to run these.
"""

import os
import uuid

import pytest

from linkblog.database import create_store
from linkblog.database.postgres import PostgresLinkStore
from linkblog.exceptions import DuplicateKeyError, NotFoundError
from linkblog.hasher import link_hash

POSTGRES_URL = os.environ.get("LINKBLOG_TEST_POSTGRES_URL")

pytestmark = pytest.mark.skipif(not POSTGRES_URL, reason="LINKBLOG_TEST_POSTGRES_URL not set")


@pytest.fixture
async def pg_store(logger):
    store = PostgresLinkStore(db_config=POSTGRES_URL, logger=logger)
    yield store
    await store.close()


def _unique_url(name):
    return f"https://example.com/{name}/{uuid.uuid4().hex}"


def test_create_store_picks_postgres():
    assert isinstance(create_store(POSTGRES_URL), PostgresLinkStore)


@pytest.mark.asyncio
class TestPostgresLinkStore:
    """Exercise the store against a live server."""

    async def test_insert_and_resolve(self, pg_store):
        url = _unique_url("insert")

        identifier = await pg_store.insert(url, "Example")

        assert identifier == link_hash(url)
        assert await pg_store.get_url(identifier) == url
        record = await pg_store.get_link(identifier)
        assert record.hits == 0
        assert record.created_at.tzinfo is not None

    async def test_duplicate(self, pg_store):
        url = _unique_url("duplicate")
        await pg_store.insert(url, "Example")

        with pytest.raises(DuplicateKeyError):
            await pg_store.insert(url, "Example")

    async def test_not_found(self, pg_store):
        with pytest.raises(NotFoundError):
            await pg_store.get_url(link_hash(_unique_url("missing")))

    async def test_increment_hits(self, pg_store):
        identifier = await pg_store.insert(_unique_url("hits"), "Example")

        await pg_store.increment_hits(identifier)
        await pg_store.increment_hits(identifier)

        assert (await pg_store.get_link(identifier)).hits == 2

    async def test_list_recent(self, pg_store):
        first = await pg_store.insert(_unique_url("first"), "first")
        second = await pg_store.insert(_unique_url("second"), "second")

        recent = [r.hash async for r in pg_store.list_recent(limit=2)]

        assert recent == [second, first]
