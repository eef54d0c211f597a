class TableParseError(Exception):
    """Raised when a tabular file cannot be read into row records."""
