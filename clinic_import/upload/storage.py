import re
import secrets
import shutil
import time
from pathlib import Path
from typing import BinaryIO, ClassVar

from clinic_import.config.settings import Settings
from clinic_import.logging.logger import Log
from clinic_import.upload.exceptions import (
    ExtractionNotFoundError,
    InvalidExtractionPath,
    PayloadTooLarge,
    UnsupportedUpload,
)
from clinic_import.upload.models import StoredUpload

UPLOAD_FIELD_NAME = "importFile"
SCRATCH_PREFIX = "chirotouch-"


def too_large_message(max_bytes: int) -> str:
    return f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB."


def unique_suffix() -> str:
    """Millisecond timestamp plus a random component, e.g. ``1760000000000-48213977``."""
    return f"{time.time_ns() // 1_000_000}-{secrets.randbelow(10**9)}"


class UploadStorage:
    """Owns the uploads root: received files and per-request scratch trees."""

    ALLOWED_EXTENSIONS: ClassVar[tuple[str, ...]] = (".csv", ".xlsx", ".xls", ".zip")
    _SCRATCH_NAME_RE: ClassVar[re.Pattern[str]] = re.compile(
        rf"^{SCRATCH_PREFIX}\d+-\d+$"
    )

    def __init__(self, settings: Settings) -> None:
        self._uploads_root = settings.uploads_root
        self._extraction_root = settings.extraction_root
        self._max_upload_bytes = settings.max_upload_bytes
        self._chunk_bytes = settings.copy_chunk_bytes

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def validate_extension(self, filename: str) -> str:
        """Return the lowercase extension of *filename*.

        Raises:
            UnsupportedUpload: if the extension is not on the allow-list.
        """
        extension = Path(filename).suffix.lower()
        if extension not in self.ALLOWED_EXTENSIONS:
            raise UnsupportedUpload("Only CSV, Excel, and ZIP files are allowed")
        return extension

    def save(self, filename: str, stream: BinaryIO) -> StoredUpload:
        """Stream an upload to disk, enforcing the size bound on actual bytes.

        A partially written file is removed on any failure.

        Raises:
            UnsupportedUpload: if the extension is not allowed.
            PayloadTooLarge: if more than max_upload_bytes arrive.
        """
        extension = self.validate_extension(filename)
        self._uploads_root.mkdir(parents=True, exist_ok=True)
        upload_id = f"{UPLOAD_FIELD_NAME}-{unique_suffix()}{extension}"
        path = self._uploads_root / upload_id

        written = 0
        try:
            with path.open("wb") as sink:
                while True:
                    chunk = stream.read(self._chunk_bytes)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self._max_upload_bytes:
                        raise PayloadTooLarge(self._too_large_message())
                    sink.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            raise

        Log.info(f"File upload: {filename}, size: {written}", upload_id=upload_id)
        return StoredUpload(
            upload_id=upload_id,
            original_filename=filename,
            extension=extension,
            path=path,
            size_bytes=written,
        )

    def create_scratch_dir(self) -> Path:
        """Create a fresh extraction directory unique to one request."""
        self._extraction_root.mkdir(parents=True, exist_ok=True)
        while True:
            scratch = self._extraction_root / f"{SCRATCH_PREFIX}{unique_suffix()}"
            try:
                scratch.mkdir()
            except FileExistsError:
                continue
            return scratch

    def resolve_extraction(self, extract_path: str) -> Path:
        """Map an extraction handle returned by a preview back to its directory.

        Raises:
            InvalidExtractionPath: if the handle is not a scratch directory name.
            ExtractionNotFoundError: if the directory no longer exists.
        """
        if not self._SCRATCH_NAME_RE.match(extract_path):
            raise InvalidExtractionPath(f"Invalid extraction reference '{extract_path}'")
        scratch = self._extraction_root / extract_path
        if not scratch.is_dir():
            raise ExtractionNotFoundError(
                "Extracted files not found. The import may have expired; upload the export again."
            )
        return scratch

    def discard_upload(self, path: Path | None) -> None:
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            Log.warning(f"Could not delete uploaded file: {exc}", path=str(path))

    def discard_tree(self, path: Path | None) -> None:
        if path is None or not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as exc:
            Log.warning(f"Could not delete extraction directory: {exc}", path=str(path))

    def _too_large_message(self) -> str:
        return too_large_message(self._max_upload_bytes)
