from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from clinic_import.preview.models import ExportPreview
from clinic_import.tabular.base import Row
from clinic_import.taxonomy.models import Taxonomy


class UploadState(str, Enum):
    """States of an upload once its file is stored.

    Receiving happens before that, in the size middleware and
    UploadStorage.save, so it has no state of its own.
    """

    DISPATCHING = "dispatching"
    CSV_PATH = "csv"
    EXCEL_PATH = "excel"
    ZIP_PATH = "zip"
    RESPONDING = "responding"
    FAILED = "failed"


@dataclass(frozen=True)
class ClinicContext:
    """Authenticated caller, as resolved by the host's auth layer."""

    clinic_id: str
    user_id: str
    user_name: str = ""


@dataclass(frozen=True)
class StoredUpload:
    """An uploaded file written to the uploads root."""

    upload_id: str  # stored file name, e.g. importFile-1760000000000-123.zip
    original_filename: str
    extension: str
    path: Path
    size_bytes: int


@dataclass
class TabularUploadPreview:
    """Response body for a CSV or Excel upload."""

    upload: StoredUpload
    total_rows: int
    preview: list[Row] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    data: list[Row] = field(default_factory=list)


@dataclass
class ImportPreview:
    """Response body for a recognized ChiroTouch export."""

    upload: StoredUpload
    structure: Taxonomy
    preview: ExportPreview
    extract_path: str  # scratch directory name under the extraction root
    is_chirotouch: bool = True
