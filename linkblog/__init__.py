"""Core business logic for linkblog."""

from .hasher import link_hash
from .service import LinkblogService
from .feed import FeedMaterializer, FeedArtifact

__all__ = ["link_hash", "LinkblogService", "FeedMaterializer", "FeedArtifact"]

__version__ = "1.0.0"
