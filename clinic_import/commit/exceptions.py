class CommitError(Exception):
    """Base exception for committing a previewed import."""


class RecordValidationError(CommitError):
    """Raised when a mapped row lacks a field the clinic record requires."""


class CommitUnavailableError(CommitError):
    """Raised when no commit backend is configured for this deployment."""
