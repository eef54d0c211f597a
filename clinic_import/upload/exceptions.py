from typing import ClassVar


class UploadError(Exception):
    """Base exception for upload rejections; carries the HTTP status to report."""

    status_code: ClassVar[int] = 400


class MissingUploadFile(UploadError):
    """Raised when the request carries no file under the upload field."""


class UnsupportedUpload(UploadError):
    """Raised when the uploaded file's extension is not on the allow-list."""


class PayloadTooLarge(UploadError):
    """Raised when the upload exceeds the configured size bound."""

    status_code: ClassVar[int] = 413


class UnrecognizedExportStructure(UploadError):
    """Raised when a ZIP holds none of the folders required of an export."""


class InvalidExtractionPath(UploadError):
    """Raised when an extraction handle does not name a scratch directory."""


class ExtractionNotFoundError(UploadError):
    """Raised when an extraction handle points at nothing on disk."""

    status_code: ClassVar[int] = 404
