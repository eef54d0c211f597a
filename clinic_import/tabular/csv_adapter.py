import csv
from collections.abc import Iterator
from pathlib import Path

from clinic_import.tabular.base import BaseTableReader, Row, rows_from_records
from clinic_import.tabular.exceptions import TableParseError


class CsvTableReader(BaseTableReader):
    """Reads delimited text with the stdlib csv module.

    The delimiter is sniffed from the head of the file among ``, ; TAB |``
    and falls back to a comma when the sample is ambiguous.
    """

    SNIFF_BYTES = 4096
    DELIMITERS = ",;\t|"

    def __init__(self, encoding: str = "utf-8-sig") -> None:
        self._encoding = encoding

    def iter_rows(self, path: Path) -> Iterator[Row]:
        try:
            with path.open("r", encoding=self._encoding, newline="") as handle:
                delimiter = self._sniff_delimiter(handle.read(self.SNIFF_BYTES))
                handle.seek(0)
                yield from rows_from_records(csv.reader(handle, delimiter=delimiter))
        except (UnicodeDecodeError, csv.Error) as exc:
            raise TableParseError(f"Cannot parse CSV '{path.name}': {exc}") from exc

    def _sniff_delimiter(self, sample: str) -> str:
        try:
            return csv.Sniffer().sniff(sample, delimiters=self.DELIMITERS).delimiter
        except csv.Error:
            return ","
