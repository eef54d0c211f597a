from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import openpyxl
import pytest
import xlrd

from clinic_import.tabular.exceptions import TableParseError
from clinic_import.tabular.openpyxl_adapter import OpenpyxlTableReader, cell_to_text
from clinic_import.tabular.xlrd_adapter import XlrdTableReader


class TestCellToText:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "TRUE"),
            (3.0, "3"),
            (2.5, "2.5"),
            (42, "42"),
            (datetime(2024, 3, 1), "2024-03-01"),
            (datetime(2024, 3, 1, 9, 30), "2024-03-01T09:30:00"),
            ("Ada", "Ada"),
        ],
    )
    def test_renders_like_a_csv_export(self, value: object, expected: str) -> None:
        assert cell_to_text(value) == expected


class TestOpenpyxlTableReader:
    def test_reads_first_sheet(self, tmp_path: Path) -> None:
        path = tmp_path / "patients.xlsx"
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["First Name", "DOB", "Visits"])
        sheet.append(["Ada", datetime(1990, 12, 10), 3])
        sheet.append([None, None, None])
        sheet.append(["Alan", None, 1.0])
        workbook.create_sheet("Other").append(["ignored"])
        workbook.save(path)

        rows = OpenpyxlTableReader().read(path)

        assert rows == [
            {"First Name": "Ada", "DOB": "1990-12-10", "Visits": "3"},
            {"First Name": "Alan", "DOB": "", "Visits": "1"},
        ]

    def test_raises_parse_error_for_non_workbook(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a workbook")

        with pytest.raises(TableParseError, match="broken.xlsx"):
            OpenpyxlTableReader().read(path)


def _cell(ctype: int, value: object) -> MagicMock:
    cell = MagicMock()
    cell.ctype = ctype
    cell.value = value
    return cell


class TestXlrdTableReader:
    @patch("clinic_import.tabular.xlrd_adapter.xlrd.open_workbook")
    def test_reads_first_sheet_cells(self, mock_open: MagicMock, tmp_path: Path) -> None:
        grid = [
            [_cell(xlrd.XL_CELL_TEXT, "Name"), _cell(xlrd.XL_CELL_TEXT, "Amount")],
            [_cell(xlrd.XL_CELL_TEXT, "Ada"), _cell(xlrd.XL_CELL_NUMBER, 12.0)],
            [_cell(xlrd.XL_CELL_EMPTY, ""), _cell(xlrd.XL_CELL_BOOLEAN, 1)],
        ]
        sheet = MagicMock(nrows=3, ncols=2)
        sheet.cell.side_effect = lambda row, col: grid[row][col]
        book = MagicMock(nsheets=1, datemode=0)
        book.sheet_by_index.return_value = sheet
        mock_open.return_value = book

        rows = XlrdTableReader().read(tmp_path / "ledger.xls")

        assert rows == [
            {"Name": "Ada", "Amount": "12"},
            {"Name": "", "Amount": "TRUE"},
        ]
        book.release_resources.assert_called_once()

    @patch("clinic_import.tabular.xlrd_adapter.xlrd.open_workbook")
    def test_wraps_open_failures(self, mock_open: MagicMock, tmp_path: Path) -> None:
        mock_open.side_effect = xlrd.XLRDError("Unsupported format")

        with pytest.raises(TableParseError, match="ledger.xls"):
            XlrdTableReader().read(tmp_path / "ledger.xls")
