from collections.abc import Callable, Sequence

from clinic_import.archive.models import MaterializedFile
from clinic_import.commit.base import BaseImportCommitter, BaseImportRecordSink
from clinic_import.commit.exceptions import RecordValidationError
from clinic_import.commit.mappers import (
    extract_patient_ref,
    map_appointment,
    map_ledger,
    map_patient,
)
from clinic_import.commit.models import (
    AttachmentCategory,
    FolderReport,
    ImportIssue,
    ImportResult,
    RecordKind,
    SelectedDatasets,
    StagedAttachment,
    StagedRecord,
)
from clinic_import.logging.logger import Log
from clinic_import.preview.aggregator import DELIMITED_EXTENSION, select_table_files
from clinic_import.tabular.base import BaseTableReader, Row
from clinic_import.tabular.exceptions import TableParseError
from clinic_import.taxonomy.models import Bucket, Taxonomy
from clinic_import.upload.models import ClinicContext

RowMapper = Callable[[Row], dict[str, str]]


class ChirotouchImportCommitter(BaseImportCommitter):
    """Maps the tables of a ChiroTouch export to clinic records and stages documents.

    Bad rows and unreadable files are reported in the result and skipped;
    only a failing sink aborts the commit.
    """

    def __init__(self, reader: BaseTableReader, sink: BaseImportRecordSink) -> None:
        self._reader = reader
        self._sink = sink

    def commit(
        self,
        import_id: int,
        taxonomy: Taxonomy,
        clinic: ClinicContext,
        datasets: SelectedDatasets,
    ) -> ImportResult:
        result = ImportResult()
        tables = taxonomy.files(Bucket.TABLES)
        data = result.chirotouch_data

        if datasets.patients:
            data.patients_imported = self._import_tables(
                import_id,
                clinic,
                RecordKind.PATIENT,
                map_patient,
                select_table_files(tables, "patient"),
                FolderReport("00_Tables/Patients"),
                result,
            )
        if datasets.appointments:
            data.appointments_imported = self._import_tables(
                import_id,
                clinic,
                RecordKind.APPOINTMENT,
                map_appointment,
                select_table_files(tables, "appointment"),
                FolderReport("00_Tables/Appointments"),
                result,
            )
        if datasets.ledger:
            data.ledger_records_imported = self._import_tables(
                import_id,
                clinic,
                RecordKind.LEDGER,
                map_ledger,
                [
                    f
                    for f in taxonomy.files(Bucket.LEDGER_HISTORY)
                    if f.extension == DELIMITED_EXTENSION
                ],
                FolderReport("01_LedgerHistory"),
                result,
            )
        if datasets.chart_notes:
            data.chart_notes_attached = self._attach_documents(
                import_id,
                clinic,
                AttachmentCategory.CHART_NOTES,
                taxonomy.files(Bucket.CHART_NOTES),
                FolderReport("03_ChartNotes"),
                result,
            )
        if datasets.scanned_docs:
            data.scanned_docs_attached = self._attach_documents(
                import_id,
                clinic,
                AttachmentCategory.SCANNED_DOCS,
                taxonomy.files(Bucket.SCANNED_DOCS),
                FolderReport("02_ScannedDocs"),
                result,
            )

        Log.info(
            f"ChiroTouch import {import_id} committed",
            clinic_id=clinic.clinic_id,
            **result.summary.to_dict(),
        )
        return result

    def _import_tables(
        self,
        import_id: int,
        clinic: ClinicContext,
        kind: RecordKind,
        mapper: RowMapper,
        files: Sequence[MaterializedFile],
        folder: FolderReport,
        result: ImportResult,
    ) -> int:
        imported = 0
        for file in files:
            folder.file_count += 1
            try:
                rows = self._reader.read(file.absolute_path)
            except (TableParseError, OSError) as exc:
                Log.warning(f"Failed to process {kind.value} file {file.file_name}: {exc}")
                folder.error_count += 1
                result.summary.error_count += 1
                result.errors.append(
                    ImportIssue(
                        type="parse_error",
                        message=f"Failed to process {kind.value} file: {exc}",
                        file_name=file.file_name,
                    )
                )
                continue

            staged: list[StagedRecord] = []
            for row_number, row in enumerate(rows, start=1):
                try:
                    fields = mapper(row)
                except RecordValidationError as exc:
                    folder.error_count += 1
                    result.summary.error_count += 1
                    result.errors.append(
                        ImportIssue(
                            type="validation",
                            message=str(exc),
                            file_name=file.file_name,
                            row=row_number,
                        )
                    )
                    continue
                staged.append(
                    StagedRecord(
                        kind=kind,
                        source_file=file.relative_path,
                        row_number=row_number,
                        fields=fields,
                    )
                )

            stored = self._sink.store_records(import_id, clinic, staged) if staged else 0
            imported += stored
            folder.processed_count += stored
            result.summary.success_count += stored
            result.summary.total_processed += len(rows)

        if folder.file_count:
            result.chirotouch_data.folders_processed.append(folder)
        return imported

    def _attach_documents(
        self,
        import_id: int,
        clinic: ClinicContext,
        category: AttachmentCategory,
        files: Sequence[MaterializedFile],
        folder: FolderReport,
        result: ImportResult,
    ) -> int:
        staged: list[StagedAttachment] = []
        for file in files:
            folder.file_count += 1
            patient_ref = extract_patient_ref(file.file_name)
            if patient_ref is None:
                result.summary.skipped_count += 1
                result.warnings.append(
                    ImportIssue(
                        type="missing_patient",
                        message=(
                            f"Could not extract patient ID from "
                            f"{category.value.lower()}: {file.file_name}"
                        ),
                        file_name=file.file_name,
                    )
                )
                continue
            staged.append(
                StagedAttachment(
                    category=category,
                    patient_ref=patient_ref,
                    file_name=file.file_name,
                    source_path=file.absolute_path,
                    size_bytes=file.size_bytes,
                )
            )

        attached = self._sink.store_attachments(import_id, clinic, staged) if staged else 0
        folder.processed_count = attached
        if folder.file_count:
            result.chirotouch_data.folders_processed.append(folder)
        return attached
