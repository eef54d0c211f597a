from collections.abc import Sequence
from dataclasses import dataclass, field

from clinic_import.archive.models import MaterializedFile
from clinic_import.logging.logger import Log
from clinic_import.preview.models import FileParseFailure, PreviewSection, TabularPreview
from clinic_import.tabular.base import BaseTableReader, Row
from clinic_import.tabular.exceptions import TableParseError
from clinic_import.taxonomy.models import Bucket, Taxonomy

DELIMITED_EXTENSION = ".csv"


@dataclass(frozen=True)
class ParseOutcome:
    """Result of scanning one file: a row count and its first rows, or an error."""

    file: MaterializedFile
    count: int = 0
    head: list[Row] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class TabularPreviewAggregator:
    """Builds patient, appointment and ledger previews from an export's CSV tables.

    Each file is scanned completely before it contributes anything, so a file
    that fails halfway adds zero rows. Failures are logged, collected in
    ``TabularPreview.failures`` and never stop the remaining files.

    Samples hold the first ``sample_size`` rows across all contributing files
    in file order, for every entity.
    """

    def __init__(self, reader: BaseTableReader, sample_size: int = 5) -> None:
        self._reader = reader
        self._sample_size = sample_size

    def aggregate(self, taxonomy: Taxonomy) -> TabularPreview:
        preview = TabularPreview()
        tables = taxonomy.files(Bucket.TABLES)

        self._fold(
            "patient",
            preview.patients,
            select_table_files(tables, "patient"),
            preview.failures,
        )
        self._fold(
            "appointment",
            preview.appointments,
            select_table_files(tables, "appointment"),
            preview.failures,
        )
        self._fold(
            "ledger",
            preview.ledger,
            [f for f in taxonomy.files(Bucket.LEDGER_HISTORY) if f.extension == DELIMITED_EXTENSION],
            preview.failures,
        )

        Log.info(
            "Aggregated tabular preview",
            patients=preview.patients.count,
            appointments=preview.appointments.count,
            ledger=preview.ledger.count,
            failed_files=len(preview.failures),
        )
        return preview

    def parse_file(self, file: MaterializedFile) -> ParseOutcome:
        count = 0
        head: list[Row] = []
        try:
            for row in self._reader.iter_rows(file.absolute_path):
                count += 1
                if len(head) < self._sample_size:
                    head.append(row)
        except (TableParseError, OSError) as exc:
            return ParseOutcome(file=file, error=str(exc))
        return ParseOutcome(file=file, count=count, head=head)

    def _fold(
        self,
        entity: str,
        section: PreviewSection,
        files: Sequence[MaterializedFile],
        failures: list[FileParseFailure],
    ) -> None:
        for file in files:
            outcome = self.parse_file(file)
            if not outcome.ok:
                Log.warning(
                    f"Failed to parse {entity} file {file.file_name}: {outcome.error}",
                    path=file.relative_path,
                )
                failures.append(
                    FileParseFailure(file_name=file.file_name, message=outcome.error or "")
                )
                continue
            section.count += outcome.count
            room = self._sample_size - len(section.sample)
            if room > 0:
                section.sample.extend(outcome.head[:room])


def select_table_files(files: Sequence[MaterializedFile], keyword: str) -> list[MaterializedFile]:
    """CSV files whose base name contains *keyword*, case-insensitively."""
    return [
        file
        for file in files
        if keyword in file.file_name.lower() and file.extension == DELIMITED_EXTENSION
    ]
