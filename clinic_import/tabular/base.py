from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path

Row = dict[str, str]


class BaseTableReader(ABC):
    """Contract for all tabular file adapters."""

    @abstractmethod
    def iter_rows(self, path: Path) -> Iterator[Row]:
        """Yield row records from the file at *path*.

        The first non-blank record supplies field names; each later record
        becomes a mapping from those names to string values.

        Raises:
            TableParseError: if the file cannot be decoded or parsed. May be
                raised after some rows were already yielded.
        """

    def read(self, path: Path) -> list[Row]:
        """Parse the whole file into a list of row records."""
        return list(self.iter_rows(path))


def rows_from_records(records: Iterable[list[str]]) -> Iterator[Row]:
    """Turn raw records into row mappings keyed by the header record.

    Blank records are skipped. Short records are padded with empty strings;
    cells beyond the header are keyed ``_<index>``.
    """
    header: list[str] | None = None
    for record in records:
        if not any(cell.strip() for cell in record):
            continue
        if header is None:
            header = [
                name.strip() or f"column_{index + 1}"
                for index, name in enumerate(record)
            ]
            continue
        row = {name: "" for name in header}
        for index, cell in enumerate(record):
            key = header[index] if index < len(header) else f"_{index}"
            row[key] = cell
        yield row
