"""Exceptions raised by the linkblog core.

Classes:
    LinkblogError:
        Base class for all linkblog errors.

    ValidationError:
        Raised when a link submission is missing a required field.

    StoreError:
        Base class for link store errors.

    DuplicateKeyError:
        Raised when inserting a link whose hash already exists.

    NotFoundError:
        Raised when no link matches an identifier.

    StoreUnavailableError:
        Raised on any other persistence failure.

    ArtifactError:
        Raised when the feed document cannot be built or written.
"""


class LinkblogError(Exception):
    """Base class for all linkblog errors."""

    pass


class ValidationError(LinkblogError):
    """Raised when a link submission is missing a required field."""

    pass


class StoreError(LinkblogError):
    """Base class for link store errors."""

    pass


class DuplicateKeyError(StoreError):
    """Raised when inserting a link whose hash already exists."""

    def __init__(self, identifier: str):
        super().__init__(f"link '{identifier}' already exists")
        self.identifier = identifier


class NotFoundError(StoreError):
    """Raised when no link matches an identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"link '{identifier}' not found")
        self.identifier = identifier


class StoreUnavailableError(StoreError):
    """Raised on any other persistence failure (connection, disk, schema)."""

    pass


class ArtifactError(LinkblogError):
    """Raised when the feed document cannot be built or written."""

    pass
