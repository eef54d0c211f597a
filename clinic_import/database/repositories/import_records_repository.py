from collections.abc import Sequence

from psycopg.types.json import Jsonb

from clinic_import.commit.base import BaseImportRecordSink
from clinic_import.commit.models import StagedAttachment, StagedRecord
from clinic_import.database.connection import get_connection
from clinic_import.upload.models import ClinicContext


class PostgresImportRecordSink(BaseImportRecordSink):
    """Stages committed rows and documents in import_records / import_attachments."""

    def store_records(
        self, import_id: int, clinic: ClinicContext, records: Sequence[StagedRecord]
    ) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.executemany(
                    """
                    INSERT INTO import_records
                    (import_id, clinic_id, kind, source_file, row_number, payload, created_by)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    [
                        (
                            import_id,
                            clinic.clinic_id,
                            record.kind.value,
                            record.source_file,
                            record.row_number,
                            Jsonb(record.fields),
                            clinic.user_name,
                        )
                        for record in records
                    ],
                )
            conn.commit()
        return len(records)

    def store_attachments(
        self, import_id: int, clinic: ClinicContext, attachments: Sequence[StagedAttachment]
    ) -> int:
        """Copy each document's bytes into the database; the scratch tree is deleted afterwards."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                for attachment in attachments:
                    cur.execute(
                        """
                        INSERT INTO import_attachments
                        (import_id, clinic_id, category, patient_ref, file_name,
                         file_type, size_bytes, content)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            import_id,
                            clinic.clinic_id,
                            attachment.category.value,
                            attachment.patient_ref,
                            attachment.file_name,
                            attachment.source_path.suffix.lower(),
                            attachment.size_bytes,
                            attachment.source_path.read_bytes(),
                        ),
                    )
            conn.commit()
        return len(attachments)
