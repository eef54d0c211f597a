from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import IO

from clinic_import.archive.exceptions import EntryReadError


class EntryStream:
    """Read-only stream over one archive member.

    Low-level failures listed in *translated_errors* surface as EntryReadError
    so callers never depend on the container format's exception types.
    """

    def __init__(
        self,
        name: str,
        raw: IO[bytes],
        translated_errors: tuple[type[BaseException], ...] = (OSError,),
    ) -> None:
        self._name = name
        self._raw = raw
        self._translated_errors = translated_errors

    def read(self, size: int = -1) -> bytes:
        try:
            return self._raw.read(size)
        except self._translated_errors as exc:
            raise EntryReadError(f"Failed to read entry '{self._name}': {exc}") from exc

    def close(self) -> None:
        self._raw.close()

    def __enter__(self) -> "EntryStream":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclass(frozen=True)
class ArchiveEntry:
    """One entry of an archive being walked.

    Only valid while the reader's iteration is positioned on it; the stream
    returned by ``open`` must be fully consumed before the next entry is
    requested.
    """

    name: str
    is_directory: bool
    compressed_size: int
    uncompressed_size: int
    opener: Callable[[], EntryStream] | None = field(default=None, repr=False, compare=False)

    def open(self) -> EntryStream:
        """Open the entry's content stream.

        Raises:
            EntryReadError: if the entry is a directory or cannot be opened.
        """
        if self.is_directory or self.opener is None:
            raise EntryReadError(f"Entry '{self.name}' is a directory and has no content")
        return self.opener()


@dataclass(frozen=True)
class MaterializedFile:
    """A file written to the scratch extraction area."""

    relative_path: str  # archive-internal path, forward-slash separated
    absolute_path: Path
    size_bytes: int

    @property
    def file_name(self) -> str:
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> str:
        return Path(self.file_name).suffix.lower()
