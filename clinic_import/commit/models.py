from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class RecordKind(str, Enum):
    PATIENT = "patient"
    APPOINTMENT = "appointment"
    LEDGER = "ledger"


class AttachmentCategory(str, Enum):
    CHART_NOTES = "Chart Notes"
    SCANNED_DOCS = "Scanned Documents"


@dataclass(frozen=True)
class SelectedDatasets:
    """Which parts of an export the user chose to import. Everything by default."""

    patients: bool = True
    appointments: bool = True
    ledger: bool = True
    chart_notes: bool = True
    scanned_docs: bool = True

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "SelectedDatasets":
        """Only an explicit ``false`` turns a dataset off."""
        payload = payload or {}
        return cls(
            patients=payload.get("patients") is not False,
            appointments=payload.get("appointments") is not False,
            ledger=payload.get("ledger") is not False,
            chart_notes=payload.get("chartNotes") is not False,
            scanned_docs=payload.get("scannedDocs") is not False,
        )


@dataclass(frozen=True)
class StagedRecord:
    """A mapped row ready to be written by a record sink."""

    kind: RecordKind
    source_file: str
    row_number: int
    fields: dict[str, str]


@dataclass(frozen=True)
class StagedAttachment:
    category: AttachmentCategory
    patient_ref: str
    file_name: str
    source_path: Path
    size_bytes: int


@dataclass
class ImportIssue:
    """An error or warning reported back to the user after a commit."""

    type: str
    message: str
    file_name: str = ""
    row: int | None = None

    def to_dict(self) -> dict[str, Any]:
        issue: dict[str, Any] = {
            "type": self.type,
            "message": self.message,
            "fileName": self.file_name,
        }
        if self.row is not None:
            issue["row"] = self.row
        return issue


@dataclass
class FolderReport:
    folder_name: str
    file_count: int = 0
    processed_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "folderName": self.folder_name,
            "fileCount": self.file_count,
            "processedCount": self.processed_count,
            "errorCount": self.error_count,
        }


@dataclass
class ImportSummary:
    total_processed: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalProcessed": self.total_processed,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "skippedCount": self.skipped_count,
        }


@dataclass
class ChirotouchData:
    patients_imported: int = 0
    appointments_imported: int = 0
    ledger_records_imported: int = 0
    chart_notes_attached: int = 0
    scanned_docs_attached: int = 0
    folders_processed: list[FolderReport] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "patientsImported": self.patients_imported,
            "appointmentsImported": self.appointments_imported,
            "ledgerRecordsImported": self.ledger_records_imported,
            "chartNotesAttached": self.chart_notes_attached,
            "scannedDocsAttached": self.scanned_docs_attached,
            "foldersProcessed": [folder.to_dict() for folder in self.folders_processed],
        }


@dataclass
class ImportResult:
    summary: ImportSummary = field(default_factory=ImportSummary)
    chirotouch_data: ChirotouchData = field(default_factory=ChirotouchData)
    errors: list[ImportIssue] = field(default_factory=list)
    warnings: list[ImportIssue] = field(default_factory=list)
