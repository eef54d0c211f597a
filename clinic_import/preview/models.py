from dataclasses import dataclass, field

from clinic_import.tabular.base import Row


@dataclass
class PreviewSection:
    """Row count plus a bounded sample of the first rows seen."""

    count: int = 0
    sample: list[Row] = field(default_factory=list)


@dataclass(frozen=True)
class DocumentListing:
    file_name: str
    size_bytes: int


@dataclass
class DocumentInventorySection:
    """File count plus a bounded listing for binary document folders."""

    count: int = 0
    files: list[DocumentListing] = field(default_factory=list)


@dataclass(frozen=True)
class FileParseFailure:
    """A tabular file whose rows were left out of the preview."""

    file_name: str
    message: str


@dataclass
class TabularPreview:
    """Output of the tabular aggregation step."""

    patients: PreviewSection = field(default_factory=PreviewSection)
    appointments: PreviewSection = field(default_factory=PreviewSection)
    ledger: PreviewSection = field(default_factory=PreviewSection)
    failures: list[FileParseFailure] = field(default_factory=list)


@dataclass(frozen=True)
class PreviewSummary:
    total_patients: int
    total_appointments: int
    total_ledger_records: int
    total_chart_notes: int
    total_scanned_docs: int


@dataclass
class ExportPreview:
    """Bounded summary of everything a recognized export contains."""

    patients: PreviewSection
    appointments: PreviewSection
    ledger: PreviewSection
    chart_notes: DocumentInventorySection
    scanned_docs: DocumentInventorySection
    failures: list[FileParseFailure] = field(default_factory=list)

    @property
    def summary(self) -> PreviewSummary:
        return PreviewSummary(
            total_patients=self.patients.count,
            total_appointments=self.appointments.count,
            total_ledger_records=self.ledger.count,
            total_chart_notes=self.chart_notes.count,
            total_scanned_docs=self.scanned_docs.count,
        )
