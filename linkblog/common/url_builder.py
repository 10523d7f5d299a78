"""URL building utilities for linkblog."""

# Path prefix the resolver is mounted under
RESOLVER_PREFIX = "/:/"


def build_short_url(
    identifier: str,
    base_url: str,
    path_prefix: str = RESOLVER_PREFIX,
) -> str:
    """Build complete short URL.

    Args:
        identifier: The link identifier
        base_url: Public base URL (e.g., https://example.com)
        path_prefix: Resolver path prefix

    Returns:
        Complete short URL
    """
    base = base_url.rstrip("/")
    prefix = path_prefix.strip("/")

    if prefix:
        return f"{base}/{prefix}/{identifier}"
    return f"{base}/{identifier}"


def build_feed_url(base_url: str) -> str:
    """Build the public URL of the RSS feed."""
    return f"{base_url.rstrip('/')}/rss"
