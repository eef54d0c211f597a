from typing import Any

from clinic_import.commit.service import CommitOutcome
from clinic_import.preview.models import (
    DocumentInventorySection,
    ExportPreview,
    PreviewSection,
)
from clinic_import.taxonomy.models import Taxonomy
from clinic_import.upload.models import ImportPreview, TabularUploadPreview

# Issues returned inline; the full lists stay in the import history.
MAX_RESPONSE_ISSUES = 10


def _section(section: PreviewSection) -> dict[str, Any]:
    return {"count": section.count, "sample": section.sample}


def _inventory(section: DocumentInventorySection) -> dict[str, Any]:
    return {
        "count": section.count,
        "files": [
            {"fileName": listing.file_name, "sizeBytes": listing.size_bytes}
            for listing in section.files
        ],
    }


def serialize_structure(taxonomy: Taxonomy) -> dict[str, Any]:
    return {
        "isChirotouch": taxonomy.is_recognized_export,
        "folders": {
            bucket.value: [
                {
                    "fileName": file.file_name,
                    "relativePath": file.relative_path,
                    "sizeBytes": file.size_bytes,
                }
                for file in files
            ]
            for bucket, files in taxonomy.buckets.items()
        },
    }


def serialize_export_preview(preview: ExportPreview) -> dict[str, Any]:
    summary = preview.summary
    return {
        "patients": _section(preview.patients),
        "appointments": _section(preview.appointments),
        "ledger": _section(preview.ledger),
        "chartNotes": _inventory(preview.chart_notes),
        "scannedDocs": _inventory(preview.scanned_docs),
        "summary": {
            "totalPatients": summary.total_patients,
            "totalAppointments": summary.total_appointments,
            "totalLedgerRecords": summary.total_ledger_records,
            "totalChartNotes": summary.total_chart_notes,
            "totalScannedDocs": summary.total_scanned_docs,
        },
        "failures": [
            {"fileName": failure.file_name, "message": failure.message}
            for failure in preview.failures
        ],
    }


def serialize_upload_result(result: TabularUploadPreview | ImportPreview) -> dict[str, Any]:
    upload = result.upload
    payload: dict[str, Any] = {
        "success": True,
        "uploadId": upload.upload_id,
        "originalFileName": upload.original_filename,
        "fileSize": upload.size_bytes,
    }
    if isinstance(result, ImportPreview):
        payload.update(
            isChirotouch=result.is_chirotouch,
            message="ChiroTouch export detected and analyzed",
            structure=serialize_structure(result.structure),
            preview=serialize_export_preview(result.preview),
            extractPath=result.extract_path,
        )
        return payload

    payload.update(
        isChirotouch=False,
        message="File uploaded and parsed successfully",
        totalRows=result.total_rows,
        preview=result.preview,
        columns=result.columns,
        data=result.data,
    )
    return payload


def serialize_commit_outcome(outcome: CommitOutcome) -> dict[str, Any]:
    result = outcome.result
    return {
        "success": True,
        "importHistoryId": outcome.import_id,
        "summary": result.summary.to_dict(),
        "chirotouchData": result.chirotouch_data.to_dict(),
        "errors": [issue.to_dict() for issue in result.errors[:MAX_RESPONSE_ISSUES]],
        "warnings": [issue.to_dict() for issue in result.warnings[:MAX_RESPONSE_ISSUES]],
    }
