"""Tests that the server handles many concurrent requests correctly.

Handlers share one link store and one feed materializer. These tests issue
simultaneous requests and check the relaxed guarantees: no request fails,
hit counts never overshoot, and every served feed carries its own
fingerprint.
"""

import asyncio

import pytest

from linkblog.hasher import fingerprint, link_hash


def _raise_failures(responses):
    for i, r in enumerate(responses):
        if isinstance(r, Exception):
            pytest.fail(f"Request {i} raised: {r}")


@pytest.mark.asyncio
class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_adds(self, client, store):
        """Many concurrent submissions with different URLs; all succeed with unique identifiers."""
        concurrency = 30
        urls = [f"https://example.com/page_{i}" for i in range(concurrency)]
        tasks = [
            client.post("/admin/add/", data={"url": url, "desc": f"page {i}"})
            for i, url in enumerate(urls)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        _raise_failures(responses)

        for i, r in enumerate(responses):
            assert r.status_code == 200, f"Request {i}: status {r.status_code} body={r.text}"
            assert link_hash(urls[i]) in r.text

        assert await store.count() == concurrency

    async def test_concurrent_duplicate_adds(self, client, store):
        """Racing submissions of one URL create exactly one row."""
        tasks = [
            client.post("/admin/add/", data={"url": "https://example.com/same", "desc": "same"})
            for _ in range(10)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        _raise_failures(responses)

        codes = sorted(r.status_code for r in responses)
        assert codes == [200] + [409] * 9
        assert await store.count() == 1

    async def test_concurrent_redirects(self, client, store):
        """Many concurrent redirects all succeed and never overcount."""
        url = "https://example.com/redirect-target"
        await client.post("/admin/add/", data={"url": url, "desc": "target"})
        identifier = link_hash(url)

        concurrency = 20
        tasks = [
            client.get(f"/:/{identifier}", follow_redirects=False)
            for _ in range(concurrency)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        _raise_failures(responses)

        for i, r in enumerate(responses):
            assert r.status_code == 301, f"Request {i}: status {r.status_code}"
            assert r.headers.get("location") == url

        hits = (await store.get_link(identifier)).hits
        assert 1 <= hits <= concurrency

    async def test_concurrent_feed_requests(self, client, store):
        """Concurrent first requests may each rebuild; every response matches its etag."""
        for i in range(5):
            await store.insert(f"https://example.com/feed_{i}", f"feed item {i}")

        tasks = [client.get("/rss/") for _ in range(15)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        _raise_failures(responses)

        for i, r in enumerate(responses):
            assert r.status_code == 200, f"Request {i}: status {r.status_code}"
            assert r.headers["etag"] == f'"{fingerprint(r.content)}"'

    async def test_concurrent_listings(self, client, store):
        for i in range(25):
            await store.insert(f"https://example.com/list_{i}", f"list item {i}")

        tasks = [client.get("/") for _ in range(10)] + [client.get("/hits/") for _ in range(10)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)
        _raise_failures(responses)

        for r in responses:
            assert r.status_code == 200
            assert r.text.count("/:/") >= 25
