"""Database layer for linkblog."""

import logging
from typing import Optional

from .base import LinkStoreBase
from .models import LinkRecord
from .sqlite import SQLiteLinkStore

__all__ = ["LinkStoreBase", "LinkRecord", "SQLiteLinkStore", "create_store"]


def create_store(database_url: str, logger: Optional[logging.Logger] = None) -> LinkStoreBase:
    """Create the link store for a database location.

    Args:
        database_url: postgres:// or postgresql:// DSN, sqlite:///path, or a bare file path
        logger: Optional logger

    Returns:
        Link store instance
    """
    if database_url.startswith(("postgres://", "postgresql://")):
        from .postgres import PostgresLinkStore

        return PostgresLinkStore(db_config=database_url, logger=logger)

    path = database_url
    if path.startswith("sqlite:///"):
        path = path[len("sqlite:///"):]
    return SQLiteLinkStore(db_config=path, logger=logger)
