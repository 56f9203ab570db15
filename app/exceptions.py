class PostError(Exception):
    """Base exception for post-related errors."""

    pass


class ValidationError(PostError, ValueError):
    """Exception raised when a required field is missing or malformed."""

    pass


class NotFoundError(PostError):
    """Exception raised when an operation targets a post that does not exist."""

    pass


class InvariantViolation(PostError):
    """Exception raised when a mutation would make a counter negative.

    The operation that raised it has no effect.
    """

    pass
