"""Hashing utilities for linkblog.

Short link identifiers use xxHash32 and feed fingerprints use xxHash64. Both
are fast, stable across processes and platforms, and short enough to live in
a URL path segment or an entity tag. Neither is a security primitive.
"""

import xxhash

IDENTIFIER_LENGTH = 8
_HEX_DIGITS = frozenset("0123456789abcdef")


def link_hash(url: str) -> str:
    """Derive the short identifier for a URL.

    The identifier is the xxHash32 of the URL's UTF-8 bytes, as 8 hex
    digits. Two different URLs may collide; the link store rejects the
    second one with a uniqueness error.

    Args:
        url: Target URL

    Returns:
        8-character lowercase hex identifier
    """
    return xxhash.xxh32_hexdigest(url.encode("utf-8"))


def fingerprint_hasher() -> xxhash.xxh64:
    """Streaming hasher matching fingerprint()."""
    return xxhash.xxh64()


def fingerprint(data: bytes) -> str:
    """Hex xxHash64 fingerprint of a byte string."""
    return xxhash.xxh64_hexdigest(data)


def is_valid_identifier(identifier: str) -> bool:
    """Check if identifier has the shape produced by link_hash.

    Args:
        identifier: Identifier to check

    Returns:
        True if it is 8 lowercase hex characters
    """
    return len(identifier) == IDENTIFIER_LENGTH and all(c in _HEX_DIGITS for c in identifier)
