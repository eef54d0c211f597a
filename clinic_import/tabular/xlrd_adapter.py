from collections.abc import Iterator
from pathlib import Path

import xlrd

from clinic_import.tabular.base import BaseTableReader, Row, rows_from_records
from clinic_import.tabular.exceptions import TableParseError
from clinic_import.tabular.openpyxl_adapter import cell_to_text


class XlrdTableReader(BaseTableReader):
    """Reads the first sheet of a legacy .xls workbook using xlrd."""

    def iter_rows(self, path: Path) -> Iterator[Row]:
        try:
            book = xlrd.open_workbook(str(path), on_demand=True)
        except Exception as exc:
            raise TableParseError(f"Cannot open workbook '{path.name}': {exc}") from exc
        try:
            if book.nsheets == 0:
                return
            sheet = book.sheet_by_index(0)
            records = (
                [self._cell_text(book, sheet.cell(row_index, col_index))
                 for col_index in range(sheet.ncols)]
                for row_index in range(sheet.nrows)
            )
            yield from rows_from_records(records)
        except TableParseError:
            raise
        except Exception as exc:
            raise TableParseError(f"Cannot read workbook '{path.name}': {exc}") from exc
        finally:
            book.release_resources()

    @staticmethod
    def _cell_text(book: xlrd.book.Book, cell: xlrd.sheet.Cell) -> str:
        if cell.ctype == xlrd.XL_CELL_DATE:
            return cell_to_text(xlrd.xldate_as_datetime(cell.value, book.datemode))
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return cell_to_text(bool(cell.value))
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
            return ""
        return cell_to_text(cell.value)
