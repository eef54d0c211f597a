from collections.abc import Iterable
from pathlib import Path, PurePosixPath, PureWindowsPath

from clinic_import.archive.exceptions import ArchiveTooLargeError, PathTraversalError
from clinic_import.archive.models import ArchiveEntry, MaterializedFile
from clinic_import.logging.logger import Log


class EntryMaterializer:
    """Writes archive entries into a scratch directory, one entry at a time."""

    DEFAULT_CHUNK_BYTES = 1024 * 1024

    def __init__(
        self,
        chunk_bytes: int = DEFAULT_CHUNK_BYTES,
        max_total_bytes: int | None = None,
    ) -> None:
        self._chunk_bytes = chunk_bytes
        self._max_total_bytes = max_total_bytes

    def materialize(
        self,
        entries: Iterable[ArchiveEntry],
        destination_root: Path,
    ) -> list[MaterializedFile]:
        """Copy every file entry below *destination_root*.

        Each entry's stream is drained to disk before the next entry is
        pulled from *entries*. A later entry with the same path replaces the
        earlier file and its record. The caller owns cleanup of whatever was
        written, including on failure.

        Raises:
            PathTraversalError: if an entry resolves outside destination_root.
            ArchiveTooLargeError: if written bytes exceed max_total_bytes.
            EntryReadError: if an entry cannot be opened or read.
        """
        root = destination_root.resolve()
        root.mkdir(parents=True, exist_ok=True)

        files: dict[str, MaterializedFile] = {}
        written_total = 0
        for entry in entries:
            target = self._resolve_target(root, entry.name)
            if entry.is_directory:
                target.mkdir(parents=True, exist_ok=True)
                continue
            if target == root:
                raise PathTraversalError(f"Entry '{entry.name}' does not name a file")

            target.parent.mkdir(parents=True, exist_ok=True)
            size = self._copy(entry, target, written_total)
            written_total += size
            relative_path = target.relative_to(root).as_posix()
            if relative_path in files:
                Log.warning(
                    f"Entry '{entry.name}' overwrote an earlier entry of the same path",
                    destination=str(root),
                )
            files[relative_path] = MaterializedFile(
                relative_path=relative_path,
                absolute_path=target,
                size_bytes=size,
            )

        Log.info(
            f"Materialized {len(files)} files ({written_total} bytes)",
            destination=str(root),
        )
        return list(files.values())

    def _resolve_target(self, root: Path, name: str) -> Path:
        if (
            PurePosixPath(name).is_absolute()
            or PureWindowsPath(name).drive
            or PureWindowsPath(name).is_absolute()
        ):
            raise PathTraversalError(f"Entry '{name}' uses an absolute path")
        target = (root / name).resolve()
        if target != root and not target.is_relative_to(root):
            raise PathTraversalError(f"Entry '{name}' resolves outside the extraction root")
        return target

    def _copy(self, entry: ArchiveEntry, target: Path, written_before: int) -> int:
        written = 0
        with entry.open() as source, target.open("wb") as sink:
            while True:
                chunk = source.read(self._chunk_bytes)
                if not chunk:
                    break
                written += len(chunk)
                if (
                    self._max_total_bytes is not None
                    and written_before + written > self._max_total_bytes
                ):
                    raise ArchiveTooLargeError(
                        f"Extracted content exceeds {self._max_total_bytes} bytes "
                        f"(while writing '{entry.name}')"
                    )
                sink.write(chunk)
        return written


def list_materialized(root: Path) -> list[MaterializedFile]:
    """Rebuild the file records of a tree materialized earlier, in path order."""
    root = root.resolve()
    return [
        MaterializedFile(
            relative_path=path.relative_to(root).as_posix(),
            absolute_path=path,
            size_bytes=path.stat().st_size,
        )
        for path in sorted(root.rglob("*"))
        if path.is_file()
    ]
