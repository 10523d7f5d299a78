"""Tests for service layer."""

import asyncio
import logging

import pytest

from linkblog.exceptions import (
    DuplicateKeyError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from linkblog.hasher import link_hash
from linkblog.service import LinkblogService


@pytest.mark.asyncio
class TestAddLink:
    """Test link intake."""

    async def test_add_link(self, service, store):
        identifier = await service.add_link("http://example.com", "Example")

        assert identifier == link_hash("http://example.com")
        assert await store.get_url(identifier) == "http://example.com"

    async def test_strips_whitespace(self, service, store):
        identifier = await service.add_link("  http://example.com \n", " Example ")

        assert identifier == link_hash("http://example.com")
        record = await store.get_link(identifier)
        assert record.description == "Example"

    @pytest.mark.parametrize(
        "url,desc",
        [
            ("http://example.com", ""),
            ("", "Example"),
            (None, "Example"),
            ("http://example.com", None),
            ("http://example.com", "   "),
        ],
    )
    async def test_missing_fields(self, service, store, url, desc):
        """Missing fields never reach the store."""
        with pytest.raises(ValidationError, match="both fields are required"):
            await service.add_link(url, desc)

        assert await store.count() == 0

    async def test_duplicate(self, service, store):
        await service.add_link("http://example.com", "Example")

        with pytest.raises(DuplicateKeyError):
            await service.add_link("http://example.com", "Example again")

        assert await store.count() == 1


@pytest.mark.asyncio
class TestResolve:
    """Test short link resolution."""

    async def test_resolve_counts_hits(self, service, store):
        identifier = await service.add_link("http://example.com", "Example")

        for _ in range(5):
            assert await service.resolve(identifier) == "http://example.com"

        assert (await store.get_link(identifier)).hits == 5

    async def test_resolve_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.resolve(link_hash("http://never-added.example"))

    async def test_resolve_malformed_identifier(self, service):
        with pytest.raises(NotFoundError):
            await service.resolve("unknown")

    async def test_concurrent_resolves_never_overcount(self, service, store):
        identifier = await service.add_link("http://example.com", "Example")
        n = 20

        results = await asyncio.gather(*[service.resolve(identifier) for _ in range(n)])

        assert results == ["http://example.com"] * n
        hits = (await store.get_link(identifier)).hits
        assert 1 <= hits <= n

    @pytest.mark.parametrize("error", [StoreUnavailableError("database is locked"), RuntimeError("boom")])
    async def test_increment_failure_does_not_block_redirect(self, service, store, monkeypatch, caplog, error):
        identifier = await service.add_link("http://example.com", "Example")

        async def broken_increment(identifier):
            raise error

        monkeypatch.setattr(store, "increment_hits", broken_increment)

        with caplog.at_level(logging.WARNING):
            assert await service.resolve(identifier) == "http://example.com"

        assert any("Could not count hit" in r.getMessage() for r in caplog.records)

    async def test_lookup_failure_propagates(self, service, store, monkeypatch):
        async def broken_get_url(identifier):
            raise StoreUnavailableError("disk I/O error")

        monkeypatch.setattr(store, "get_url", broken_get_url)

        with pytest.raises(StoreUnavailableError):
            await service.resolve(link_hash("http://example.com"))


@pytest.mark.asyncio
class TestListings:
    """Test listing helpers."""

    async def test_list_recent_and_by_hits(self, service, store, sample_links):
        for url, desc, now in sample_links:
            await service.add_link(url, desc, now)
        oldest = link_hash(sample_links[0][0])
        await service.resolve(oldest)

        recent = [r.hash async for r in service.list_recent()]
        by_hits = [r.hash async for r in service.list_by_hits()]

        assert recent[-1] == oldest
        assert by_hits[0] == oldest

    async def test_close(self, store, logger):
        service = LinkblogService(store=store, logger=logger)
        await service.close()
