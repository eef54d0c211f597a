from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class ImportHistoryRecord:
    """Represents a row from the import_history table."""

    id: int
    clinic_id: str
    import_type: str
    original_file_name: str
    file_size: int
    imported_by: str
    imported_by_user_id: str
    status: str
    summary: dict[str, Any] | None = None
    chirotouch_data: dict[str, Any] | None = None
    error_message: str | None = None
    processing_duration_ms: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
