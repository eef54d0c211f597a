from collections.abc import Iterator
from datetime import date, datetime, time
from pathlib import Path

import openpyxl

from clinic_import.tabular.base import BaseTableReader, Row, rows_from_records
from clinic_import.tabular.exceptions import TableParseError


def cell_to_text(value: object) -> str:
    """Render a spreadsheet cell the way it would appear in a CSV export."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


class OpenpyxlTableReader(BaseTableReader):
    """Reads the first worksheet of an .xlsx workbook using openpyxl."""

    def iter_rows(self, path: Path) -> Iterator[Row]:
        try:
            workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
        except Exception as exc:
            raise TableParseError(f"Cannot open workbook '{path.name}': {exc}") from exc
        try:
            sheet = workbook.worksheets[0] if workbook.worksheets else None
            if sheet is None:
                return
            records = (
                [cell_to_text(value) for value in values]
                for values in sheet.iter_rows(values_only=True)
            )
            yield from rows_from_records(records)
        except TableParseError:
            raise
        except Exception as exc:
            raise TableParseError(f"Cannot read workbook '{path.name}': {exc}") from exc
        finally:
            workbook.close()
