from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from clinic_import.commit.models import ImportResult
from clinic_import.database.connection import get_connection
from clinic_import.database.models import ImportHistoryRecord
from clinic_import.upload.models import ClinicContext

IMPORT_TYPE_CHIROTOUCH = "chirotouch-full"
# Only the first issues are kept with the history row.
MAX_STORED_ISSUES = 100


class ImportHistoryRepository:
    """Database operations for the import_history table."""

    def create(
        self,
        clinic: ClinicContext,
        original_file_name: str,
        file_size: int,
    ) -> int:
        """Insert a history row in 'processing' state and return its id."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO import_history
                    (clinic_id, import_type, original_file_name, file_size,
                     imported_by, imported_by_user_id, status)
                    VALUES (%s, %s, %s, %s, %s, %s, 'processing')
                    RETURNING id
                    """,
                    (
                        clinic.clinic_id,
                        IMPORT_TYPE_CHIROTOUCH,
                        original_file_name,
                        file_size,
                        clinic.user_name,
                        clinic.user_id,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError("INSERT INTO import_history returned no id")
        return int(row[0])

    def mark_completed(self, import_id: int, result: ImportResult) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE import_history
                SET status = 'completed',
                    summary = %s,
                    chirotouch_data = %s,
                    errors = %s,
                    warnings = %s,
                    processing_duration_ms =
                        (EXTRACT(EPOCH FROM (NOW() - processing_started)) * 1000)::bigint,
                    updated_at = NOW()
                WHERE id = %s
                """,
                (
                    Jsonb(result.summary.to_dict()),
                    Jsonb(result.chirotouch_data.to_dict()),
                    Jsonb([issue.to_dict() for issue in result.errors[:MAX_STORED_ISSUES]]),
                    Jsonb([issue.to_dict() for issue in result.warnings[:MAX_STORED_ISSUES]]),
                    import_id,
                ),
            )
            conn.commit()

    def mark_failed(self, import_id: int, error: str) -> None:
        with get_connection() as conn:
            conn.execute(
                """
                UPDATE import_history
                SET status = 'failed',
                    error_message = %s,
                    processing_duration_ms =
                        (EXTRACT(EPOCH FROM (NOW() - processing_started)) * 1000)::bigint,
                    updated_at = NOW()
                WHERE id = %s
                """,
                (error, import_id),
            )
            conn.commit()

    def find_by_id(self, import_id: int) -> ImportHistoryRecord | None:
        """Find a history row by ID. Useful for tests."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, clinic_id, import_type, original_file_name, file_size,
                           imported_by, imported_by_user_id, status, summary,
                           chirotouch_data, error_message, processing_duration_ms,
                           created_at, updated_at
                    FROM import_history
                    WHERE id = %s
                    """,
                    (import_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        return ImportHistoryRecord(
            id=row["id"],
            clinic_id=row["clinic_id"],
            import_type=row["import_type"],
            original_file_name=row["original_file_name"],
            file_size=row["file_size"],
            imported_by=row["imported_by"],
            imported_by_user_id=row["imported_by_user_id"],
            status=row["status"],
            summary=row["summary"],
            chirotouch_data=row["chirotouch_data"],
            error_message=row["error_message"],
            processing_duration_ms=row["processing_duration_ms"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
