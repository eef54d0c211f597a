from pathlib import Path

import pytest

from clinic_import.tabular.csv_adapter import CsvTableReader
from clinic_import.tabular.exceptions import TableParseError


def _csv(tmp_path: Path, content: bytes, name: str = "table.csv") -> Path:
    path = tmp_path / name
    path.write_bytes(content)
    return path


class TestCsvTableReader:
    def test_first_row_supplies_field_names(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"firstName,lastName\nAda,Lovelace\nAlan,Turing\n")

        rows = CsvTableReader().read(path)

        assert rows == [
            {"firstName": "Ada", "lastName": "Lovelace"},
            {"firstName": "Alan", "lastName": "Turing"},
        ]

    def test_values_stay_strings(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"date,amount\n2024-01-02,10.50\n")

        (row,) = CsvTableReader().read(path)

        assert row == {"date": "2024-01-02", "amount": "10.50"}

    def test_strips_byte_order_mark(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"\xef\xbb\xbfPatient ID,Name\n7,Ada\n")

        (row,) = CsvTableReader().read(path)

        assert "Patient ID" in row

    def test_sniffs_semicolon_delimiter(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"a;b\n1;2\n3;4\n")

        rows = CsvTableReader().read(path)

        assert rows[0] == {"a": "1", "b": "2"}

    def test_quoted_fields_keep_commas_and_newlines(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b'name,notes\nAda,"likes, commas\nand lines"\n')

        (row,) = CsvTableReader().read(path)

        assert row["notes"] == "likes, commas\nand lines"

    def test_blank_lines_are_skipped_and_short_rows_padded(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"a,b,c\n\n1,2\n")

        rows = CsvTableReader().read(path)

        assert rows == [{"a": "1", "b": "2", "c": ""}]

    def test_header_only_file_has_no_rows(self, tmp_path: Path) -> None:
        assert CsvTableReader().read(_csv(tmp_path, b"a,b\n")) == []

    def test_empty_file_has_no_rows(self, tmp_path: Path) -> None:
        assert CsvTableReader().read(_csv(tmp_path, b"")) == []

    def test_invalid_encoding_raises_parse_error(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"name\n\xff\xfe\xfa broken\n", name="bad.csv")

        with pytest.raises(TableParseError, match="bad.csv"):
            CsvTableReader().read(path)

    def test_iter_rows_is_lazy(self, tmp_path: Path) -> None:
        path = _csv(tmp_path, b"a\n1\n2\n3\n")

        iterator = CsvTableReader().iter_rows(path)

        assert next(iterator) == {"a": "1"}
