from clinic_import.config.settings import Settings
from clinic_import.tabular.base import BaseTableReader
from clinic_import.tabular.csv_adapter import CsvTableReader
from clinic_import.tabular.openpyxl_adapter import OpenpyxlTableReader
from clinic_import.tabular.xlrd_adapter import XlrdTableReader


class TableReaderFactory:
    """Creates the table reader for a file extension."""

    ADAPTERS: dict[str, type[BaseTableReader]] = {
        ".csv": CsvTableReader,
        ".xlsx": OpenpyxlTableReader,
        ".xls": XlrdTableReader,
    }

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def supports(self, extension: str) -> bool:
        return extension.lower() in self.ADAPTERS

    def create(self, extension: str) -> BaseTableReader:
        ext = extension.lower()
        adapter_cls = self.ADAPTERS.get(ext)
        if adapter_cls is None:
            raise ValueError(
                f"Unsupported table format '{ext}'. Choose from: {list(self.ADAPTERS)}"
            )
        if adapter_cls is CsvTableReader:
            return CsvTableReader(encoding=self._settings.csv_encoding)
        return adapter_cls()
