import zipfile
import zlib
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from pathlib import Path

from clinic_import.archive.exceptions import ArchiveCorruptError, EntryReadError
from clinic_import.archive.models import ArchiveEntry, EntryStream

# Errors zipfile raises for damaged members: bad local headers, CRC
# mismatches, truncated deflate streams, encrypted or unsupported entries.
_MEMBER_ERRORS: tuple[type[BaseException], ...] = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
    RuntimeError,
    NotImplementedError,
)


class BaseArchiveReader(ABC):
    """Contract for archive readers."""

    @abstractmethod
    def open(self, source: Path) -> Generator[ArchiveEntry, None, None]:
        """Walk the archive at *source*, yielding entries lazily.

        Entries are produced one at a time; each entry's content stream is
        only valid until the next entry is requested.

        Raises:
            ArchiveCorruptError: if the archive index cannot be located or read.
        """


class ZipArchiveReader(BaseArchiveReader):
    """Walks a ZIP archive through its central directory.

    The archive file is seeked, never loaded whole; member data is
    decompressed only while a consumer reads an entry's stream.
    """

    def open(self, source: Path) -> Generator[ArchiveEntry, None, None]:
        try:
            archive = zipfile.ZipFile(source)
        except (zipfile.BadZipFile, EOFError) as exc:
            raise ArchiveCorruptError(f"Cannot read ZIP archive '{source.name}': {exc}") from exc

        with archive:
            for info in archive.infolist():
                name = info.filename.replace("\\", "/")
                is_directory = name.endswith("/")
                yield ArchiveEntry(
                    name=name,
                    is_directory=is_directory,
                    compressed_size=info.compress_size,
                    uncompressed_size=info.file_size,
                    opener=None if is_directory else _member_opener(archive, info, name),
                )


def _member_opener(
    archive: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    name: str,
) -> Callable[[], EntryStream]:
    def _open() -> EntryStream:
        try:
            raw = archive.open(info)
        except _MEMBER_ERRORS as exc:
            raise EntryReadError(f"Cannot open entry '{name}': {exc}") from exc
        return EntryStream(name, raw, translated_errors=_MEMBER_ERRORS)

    return _open
