from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from clinic_import.archive.models import MaterializedFile
from clinic_import.preview.models import DocumentInventorySection, TabularPreview
from clinic_import.tabular.base import Row
from clinic_import.taxonomy.models import Taxonomy
from clinic_import.upload.models import (
    ClinicContext,
    ImportPreview,
    StoredUpload,
    TabularUploadPreview,
    UploadState,
)


@dataclass(slots=True)
class UploadContext:
    upload: StoredUpload
    clinic: ClinicContext
    state: UploadState = UploadState.DISPATCHING
    rows: list[Row] = field(default_factory=list)
    scratch_dir: Path | None = None
    materialized: list[MaterializedFile] = field(default_factory=list)
    taxonomy: Taxonomy | None = None
    tabular_preview: TabularPreview | None = None
    chart_notes: DocumentInventorySection | None = None
    scanned_docs: DocumentInventorySection | None = None
    result: TabularUploadPreview | ImportPreview | None = None
    error_message: str = ""


class UploadStep(ABC):
    @abstractmethod
    def run(self, context: UploadContext) -> UploadContext:
        raise NotImplementedError
