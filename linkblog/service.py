"""Business logic service for linkblog."""

import logging
from datetime import datetime
from typing import AsyncIterator, Optional

from .common.validators import is_valid_short_code, validate_submission
from .database.base import LinkStoreBase
from .database.models import LinkRecord
from .exceptions import NotFoundError, ValidationError


class LinkblogService:
    """Service layer for link intake, resolution and listings."""

    def __init__(
        self,
        store: LinkStoreBase,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize linkblog service.

        Args:
            store: Link store instance
            logger: Optional logger
        """
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    async def add_link(
        self,
        url: Optional[str],
        description: Optional[str],
        now: Optional[datetime] = None,
    ) -> str:
        """Validate and store a new link.

        Args:
            url: Target URL
            description: Free-text description
            now: Optional creation timestamp (defaults to now UTC)

        Returns:
            The identifier of the new link

        Raises:
            ValidationError: If either field is missing or blank
            DuplicateKeyError: If the URL was already submitted
            StoreUnavailableError: On other persistence errors
        """
        is_valid, error = validate_submission(url, description)
        if not is_valid:
            raise ValidationError(error)

        return await self.store.insert(url.strip(), description.strip(), now)

    async def resolve(self, identifier: str) -> str:
        """Look up the target URL of a short link and count the hit.

        The hit counter is best-effort: a failed increment is logged and the
        URL is still returned.

        Args:
            identifier: The link identifier

        Returns:
            The target URL

        Raises:
            NotFoundError: If no link matches
            StoreUnavailableError: If the lookup itself fails
        """
        is_valid, _ = is_valid_short_code(identifier)
        if not is_valid:
            raise NotFoundError(identifier)

        url = await self.store.get_url(identifier)
        await self._count_hit(identifier)

        self.logger.debug(f"Resolved {identifier} -> {url}")
        return url

    async def _count_hit(self, identifier: str) -> None:
        try:
            await self.store.increment_hits(identifier)
        except Exception as e:
            self.logger.warning(f"Could not count hit for {identifier}: {e}")

    async def get_link(self, identifier: str) -> LinkRecord:
        """Get the stored record for an identifier."""
        return await self.store.get_link(identifier)

    def list_recent(self, limit: Optional[int] = None) -> AsyncIterator[LinkRecord]:
        """Stream links, newest first."""
        return self.store.list_recent(order="time", limit=limit)

    def list_by_hits(self, limit: Optional[int] = None) -> AsyncIterator[LinkRecord]:
        """Stream links, most visited first."""
        return self.store.list_recent(order="hits", limit=limit)

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
