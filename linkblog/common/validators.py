"""Validation utilities for linkblog."""

from typing import Optional, Tuple

from ..hasher import is_valid_identifier

MISSING_FIELDS_MESSAGE = "both fields are required"


def validate_submission(url: Optional[str], description: Optional[str]) -> Tuple[bool, str]:
    """Validate a link submission.

    Only presence is checked; the URL is not parsed or fetched.

    Args:
        url: Submitted target URL
        description: Submitted description

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not url.strip() or not description or not description.strip():
        return False, MISSING_FIELDS_MESSAGE
    return True, ""


def is_valid_short_code(identifier: str) -> Tuple[bool, str]:
    """Validate the shape of a short link identifier.

    Args:
        identifier: The identifier to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not identifier or not isinstance(identifier, str):
        return False, "Identifier is required"

    if not is_valid_identifier(identifier):
        return False, "Identifier must be 8 lowercase hex characters"

    return True, ""
