"""Abstract base class for linkblog link store implementations."""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Optional

from .models import LinkRecord

# Marks the end of a list_recent stream
_END = object()


class _Failure:
    """Carries a producer error across the list_recent queue."""

    def __init__(self, error: Exception):
        self.error = error


Emit = Callable[[LinkRecord], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> datetime:
    """Coerce an optional timestamp to aware UTC (naive values are taken as UTC)."""
    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LinkStoreBase(ABC):
    """Abstract base class for link store operations.

    The store is the only writer of persisted state. A single instance is
    shared by every request handler and must be safe for concurrent use.
    """

    # Columns list_recent may order by
    ORDER_COLUMNS = {"time": "time", "hits": "hits"}

    # Capacity of the handoff queue between the list producer and its consumer
    QUEUE_SIZE = 10

    def __init__(self, db_config: str, logger: Optional[logging.Logger] = None):
        """Initialize link store.

        Args:
            db_config: Database location (path or connection string)
            logger: Optional logger instance
        """
        self.db_config = db_config
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    async def insert(
        self,
        url: str,
        description: str,
        now: Optional[datetime] = None,
    ) -> str:
        """Insert a new link with zero hits.

        Args:
            url: Target URL
            description: Free-text description
            now: Creation timestamp (defaults to now UTC)

        Returns:
            The identifier assigned to the link

        Raises:
            DuplicateKeyError: If a link with the same hash exists
            StoreUnavailableError: On any other persistence error
        """
        pass

    @abstractmethod
    async def get_url(self, identifier: str) -> str:
        """Get the target URL for an identifier.

        Raises:
            NotFoundError: If no link matches
            StoreUnavailableError: On any other persistence error
        """
        pass

    @abstractmethod
    async def get_link(self, identifier: str) -> LinkRecord:
        """Get the full record for an identifier.

        Raises:
            NotFoundError: If no link matches
            StoreUnavailableError: On any other persistence error
        """
        pass

    @abstractmethod
    async def increment_hits(self, identifier: str) -> None:
        """Add one to the hit counter of a link.

        Raises:
            StoreUnavailableError: If the update fails
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored links."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close database connections."""
        pass

    @abstractmethod
    async def _produce(self, column: str, limit: Optional[int], emit: Emit) -> None:
        """Query links ordered by column descending and emit each record.

        Args:
            column: Validated order column
            limit: Maximum number of rows, or None for all
            emit: Coroutine that hands one record to the consumer
        """
        pass

    def _order_column(self, order: str) -> str:
        try:
            return self.ORDER_COLUMNS[order]
        except KeyError:
            raise ValueError(f"Unknown order '{order}' (expected 'time' or 'hits')") from None

    async def list_recent(
        self,
        order: str = "time",
        limit: Optional[int] = None,
    ) -> AsyncIterator[LinkRecord]:
        """Stream links ordered descending by creation time or hits.

        A background producer fills a bounded queue so the consumer can start
        before the whole result set is read. Each call re-queries the store.
        Closing the iterator early cancels the producer.

        Args:
            order: "time" or "hits"
            limit: Maximum number of links, or None for all

        Yields:
            LinkRecord instances

        Raises:
            ValueError: If order is unknown
            StoreUnavailableError: If the query fails mid-stream
        """
        column = self._order_column(order)
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.QUEUE_SIZE)
        producer = asyncio.create_task(self._run_producer(column, limit, queue))

        try:
            while True:
                item = await queue.get()
                if item is _END:
                    break
                if isinstance(item, _Failure):
                    raise item.error
                yield item
        finally:
            if not producer.done():
                producer.cancel()
                try:
                    await producer
                except asyncio.CancelledError:
                    pass

    async def _run_producer(
        self,
        column: str,
        limit: Optional[int],
        queue: asyncio.Queue,
    ) -> None:
        try:
            await self._produce(column, limit, queue.put)
        except Exception as e:
            self.logger.error(f"Error listing links by {column}: {e}")
            await queue.put(_Failure(e))
            return
        await queue.put(_END)
