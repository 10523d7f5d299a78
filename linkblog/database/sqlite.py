"""SQLite implementation of the link store."""

import asyncio
import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from ..exceptions import DuplicateKeyError, NotFoundError, StoreUnavailableError
from ..hasher import link_hash
from .base import Emit, LinkStoreBase, as_utc
from .models import LinkRecord


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS links (
	id INTEGER NOT NULL PRIMARY KEY,
	hash TEXT NOT NULL UNIQUE,
	"desc" TEXT,
	url TEXT,
	hits INTEGER,
	time TIMESTAMP
);
"""


class SQLiteLinkStore(LinkStoreBase):
    """SQLite link store.

    Every operation opens its own connection and runs in a worker thread, so
    one instance can serve many concurrent requests.
    """

    def __init__(
        self,
        db_config: str,
        timeout_seconds: float = 30.0,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize SQLite store and create the links table.

        Args:
            db_config: Path to the database file
            timeout_seconds: How long to wait on a locked database
            logger: Optional logger instance

        Raises:
            StoreUnavailableError: If the database cannot be opened
        """
        super().__init__(db_config, logger)
        self.path = db_config
        self.timeout_seconds = timeout_seconds
        self._ensure_table()

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.path,
            timeout=self.timeout_seconds,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connect(self):
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_table(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            with self._connect() as conn:
                conn.executescript(CREATE_TABLE_SQL)
                conn.commit()
        except (OSError, sqlite3.Error) as e:
            self.logger.error(f"Error creating links table in {self.path}: {e}")
            raise StoreUnavailableError(str(e)) from e
        self.logger.debug(f"Links table ready in {self.path}")

    def _insert(self, identifier: str, url: str, description: str, now: datetime) -> None:
        with self._connect() as conn:
            conn.execute(
                'INSERT INTO links (hash, "desc", url, time, hits) VALUES (?, ?, ?, ?, 0)',
                (identifier, description, url, now.isoformat(timespec="microseconds")),
            )
            conn.commit()

    async def insert(
        self,
        url: str,
        description: str,
        now: Optional[datetime] = None,
    ) -> str:
        identifier = link_hash(url)
        try:
            await asyncio.to_thread(self._insert, identifier, url, description, as_utc(now))
        except sqlite3.IntegrityError as e:
            if "UNIQUE" not in str(e):
                self.logger.error(f"Error inserting link {identifier}: {e}")
                raise StoreUnavailableError(str(e)) from e
            self.logger.info(f"Link already exists: {identifier}")
            raise DuplicateKeyError(identifier) from e
        except sqlite3.Error as e:
            self.logger.error(f"Error inserting link {identifier}: {e}")
            raise StoreUnavailableError(str(e)) from e

        self.logger.info(f"Created link: {identifier} -> {url}")
        return identifier

    def _fetch_one(self, sql: str, identifier: str) -> Optional[sqlite3.Row]:
        with self._connect() as conn:
            return conn.execute(sql, (identifier,)).fetchone()

    async def get_url(self, identifier: str) -> str:
        try:
            row = await asyncio.to_thread(
                self._fetch_one, "SELECT url FROM links WHERE hash = ?", identifier
            )
        except sqlite3.Error as e:
            self.logger.error(f"Error looking up link {identifier}: {e}")
            raise StoreUnavailableError(str(e)) from e

        if row is None:
            raise NotFoundError(identifier)
        return row["url"]

    async def get_link(self, identifier: str) -> LinkRecord:
        try:
            row = await asyncio.to_thread(
                self._fetch_one,
                'SELECT hash, "desc", url, hits, time FROM links WHERE hash = ?',
                identifier,
            )
        except sqlite3.Error as e:
            self.logger.error(f"Error getting link {identifier}: {e}")
            raise StoreUnavailableError(str(e)) from e

        if row is None:
            raise NotFoundError(identifier)
        return LinkRecord.from_row(row)

    def _increment(self, identifier: str) -> None:
        with self._connect() as conn:
            conn.execute("UPDATE links SET hits = hits + 1 WHERE hash = ?", (identifier,))
            conn.commit()

    async def increment_hits(self, identifier: str) -> None:
        try:
            await asyncio.to_thread(self._increment, identifier)
        except sqlite3.Error as e:
            raise StoreUnavailableError(str(e)) from e

    def _count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM links").fetchone()[0]

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._count)
        except sqlite3.Error as e:
            self.logger.error(f"Error counting links: {e}")
            raise StoreUnavailableError(str(e)) from e

    async def _produce(self, column: str, limit: Optional[int], emit: Emit) -> None:
        sql = (
            f'SELECT time, hash, "desc", url, hits FROM links '
            f"ORDER BY {column} DESC, id DESC LIMIT ?"
        )
        conn = await asyncio.to_thread(self._open)
        try:
            # SQLite treats a negative LIMIT as no limit
            cursor = await asyncio.to_thread(conn.execute, sql, (-1 if limit is None else limit,))
            while True:
                rows = await asyncio.to_thread(cursor.fetchmany, self.QUEUE_SIZE)
                if not rows:
                    break
                for row in rows:
                    try:
                        record = LinkRecord.from_row(row)
                    except (KeyError, TypeError, ValueError) as e:
                        self.logger.warning(f"Skipping unreadable link row: {e}")
                        continue
                    await emit(record)
        except sqlite3.Error as e:
            raise StoreUnavailableError(str(e)) from e
        finally:
            conn.close()

    async def close(self) -> None:
        # Connections are per operation; nothing is held open.
        self.logger.debug(f"Closed SQLite store {self.path}")
