class ArchiveError(Exception):
    """Base exception for all archive-related errors."""


class ArchiveCorruptError(ArchiveError):
    """Raised when the archive trailer or central directory cannot be read."""


class EntryReadError(ArchiveError):
    """Raised when a single archive entry cannot be opened or drained."""


class PathTraversalError(ArchiveError):
    """Raised when an entry path resolves outside the extraction root."""


class ArchiveTooLargeError(ArchiveError):
    """Raised when extracted content exceeds the configured byte budget."""
