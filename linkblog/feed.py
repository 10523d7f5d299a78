"""RSS feed materializer for linkblog.

The feed is a derived artifact: ``rss.xml`` plus ``rss.xml.etag`` in a
working directory. The etag file holds the xxHash64 fingerprint of the exact
bytes of the document and is served as the HTTP entity tag. The pair is
rebuilt when the document is missing or older than the staleness window and
is otherwise served as is.

Regeneration is not locked. Concurrent rebuilds each write private temporary
files and then swap them into place; the last one to swap wins.
"""

import asyncio
import logging
import os
import re
import tempfile
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from typing import BinaryIO, List, Optional

import xxhash

from .common.url_builder import build_feed_url, build_short_url
from .database.base import LinkStoreBase, utc_now
from .database.models import LinkRecord
from .exceptions import ArtifactError, StoreError
from .hasher import fingerprint_hasher

FEED_FILENAME = "rss.xml"
ETAG_SUFFIX = ".etag"

DEFAULT_FEED_LIMIT = 50
DEFAULT_STALE_SECONDS = 30 * 60

CHANNEL_TITLE = "linkblog"
CHANNEL_LANGUAGE = "en-us"
GENERATOR = "linkblog"
RSS_DOCS_URL = "http://blogs.law.harvard.edu/tech/rss"

# Characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def xml_text(value: str) -> str:
    """Replace characters XML cannot carry with U+FFFD."""
    return _INVALID_XML_CHARS.sub("\ufffd", value)


@dataclass(frozen=True)
class FeedArtifact:
    """Bytes of the served feed and their fingerprint."""

    body: bytes
    etag: str

    @property
    def quoted_etag(self) -> str:
        return f'"{self.etag}"'


class _HashingWriter:
    """Binary writer that hashes every byte it passes through."""

    def __init__(self, out: BinaryIO, hasher: xxhash.xxh64):
        self.out = out
        self.hasher = hasher

    def write(self, data: bytes) -> int:
        self.hasher.update(data)
        return self.out.write(data)


class FeedMaterializer:
    """Builds, caches and serves the RSS feed."""

    def __init__(
        self,
        store: LinkStoreBase,
        work_dir: str,
        public_base_url: str,
        feed_limit: int = DEFAULT_FEED_LIMIT,
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize feed materializer.

        Args:
            store: Link store to read recent links from
            work_dir: Directory holding rss.xml and rss.xml.etag
            public_base_url: Base URL used for links inside the feed
            feed_limit: Maximum number of items in the feed
            stale_seconds: Age after which the cached feed is rebuilt
            logger: Optional logger
        """
        self.store = store
        self.work_dir = work_dir
        self.public_base_url = public_base_url.rstrip("/")
        self.feed_limit = feed_limit
        self.stale_seconds = stale_seconds
        self.logger = logger or logging.getLogger(__name__)

        self.feed_path = os.path.join(work_dir, FEED_FILENAME)
        self.etag_path = self.feed_path + ETAG_SUFFIX

    async def get_feed(self) -> FeedArtifact:
        """Return the cached feed, rebuilding it first if absent or stale.

        Raises:
            ArtifactError: If the feed cannot be rebuilt or read
        """
        if self.is_stale():
            await self.regenerate()
        return self._read_artifact()

    def is_stale(self) -> bool:
        """Check whether the cached feed is missing or too old."""
        try:
            modified = os.stat(self.feed_path).st_mtime
        except OSError:
            return True
        return time.time() - modified > self.stale_seconds

    async def regenerate(self) -> None:
        """Rebuild the feed and its fingerprint from the current store state.

        Raises:
            ArtifactError: If reading links, serializing or writing fails. The
                previously cached feed is left in place.
        """
        try:
            records = [
                record
                async for record in self.store.list_recent(order="time", limit=self.feed_limit)
            ]
        except StoreError as e:
            self.logger.error(f"Error reading links for feed: {e}")
            raise ArtifactError(f"could not read links: {e}") from e

        document = self.build_document(records, utc_now())

        try:
            tmp_feed, tmp_etag = await asyncio.to_thread(self._write_temp, document)
        except OSError as e:
            self.logger.error(f"Error writing feed: {e}")
            raise ArtifactError(f"could not write feed: {e}") from e

        # No await between the two swaps, so readers in this process always see a matching pair.
        try:
            os.replace(tmp_feed, self.feed_path)
        except OSError as e:
            self._discard(tmp_feed, tmp_etag)
            self.logger.error(f"Error publishing feed: {e}")
            raise ArtifactError(f"could not publish feed: {e}") from e
        try:
            os.replace(tmp_etag, self.etag_path)
        except OSError as e:
            # The old etag no longer matches the new document; drop both so the next request rebuilds.
            self._discard(tmp_etag, self.feed_path)
            self.logger.error(f"Error publishing feed fingerprint: {e}")
            raise ArtifactError(f"could not publish feed fingerprint: {e}") from e

        self.logger.info(f"Regenerated feed with {len(records)} items")

    def build_document(self, records: List[LinkRecord], generated_at: datetime) -> ET.ElementTree:
        """Build the RSS 2.0 document for a list of links."""
        stamp = format_datetime(generated_at, usegmt=True)

        rss = ET.Element("rss", version="2.0")
        channel = ET.SubElement(rss, "channel")
        for tag, text in (
            ("title", CHANNEL_TITLE),
            ("link", build_feed_url(self.public_base_url)),
            ("description", ""),
            ("language", CHANNEL_LANGUAGE),
            ("generator", GENERATOR),
            ("docs", RSS_DOCS_URL),
            ("pubDate", stamp),
            ("lastBuildDate", stamp),
        ):
            ET.SubElement(channel, tag).text = text

        for record in records:
            link = build_short_url(record.hash, self.public_base_url)
            item = ET.SubElement(channel, "item")
            ET.SubElement(item, "title").text = xml_text(record.description)
            ET.SubElement(item, "link").text = link
            ET.SubElement(item, "description").text = xml_text(record.description)
            ET.SubElement(item, "guid", isPermaLink="true").text = link
            ET.SubElement(item, "pubDate").text = format_datetime(record.created_at, usegmt=True)

        ET.indent(rss)
        return ET.ElementTree(rss)

    def _write_temp(self, document: ET.ElementTree):
        """Write document and fingerprint to fresh temporary files.

        Returns:
            Tuple of (feed temp path, etag temp path)
        """
        os.makedirs(self.work_dir, exist_ok=True)
        hasher = fingerprint_hasher()
        tmp_feed = tmp_etag = None
        try:
            fd, tmp_feed = tempfile.mkstemp(dir=self.work_dir, prefix=f".{FEED_FILENAME}.")
            with os.fdopen(fd, "wb") as out:
                document.write(_HashingWriter(out, hasher), encoding="utf-8", xml_declaration=True)

            fd, tmp_etag = tempfile.mkstemp(dir=self.work_dir, prefix=f".{FEED_FILENAME}{ETAG_SUFFIX}.")
            with os.fdopen(fd, "w", encoding="ascii") as out:
                out.write(hasher.hexdigest())
        except BaseException:
            self._discard(tmp_feed, tmp_etag)
            raise

        return tmp_feed, tmp_etag

    def _read_artifact(self) -> FeedArtifact:
        try:
            with open(self.feed_path, "rb") as f:
                body = f.read()
            with open(self.etag_path, "r", encoding="ascii") as f:
                etag = f.read().strip()
        except OSError as e:
            self.logger.error(f"Error reading feed: {e}")
            raise ArtifactError(f"could not read feed: {e}") from e
        return FeedArtifact(body=body, etag=etag)

    def _discard(self, *paths: Optional[str]) -> None:
        for path in paths:
            if not path:
                continue
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                self.logger.warning(f"Could not remove {path}: {e}")
