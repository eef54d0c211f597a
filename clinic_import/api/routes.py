from typing import Any

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from clinic_import.api.auth import get_clinic
from clinic_import.api.serializers import serialize_commit_outcome, serialize_upload_result
from clinic_import.commit.exceptions import CommitUnavailableError
from clinic_import.commit.models import SelectedDatasets
from clinic_import.commit.service import ImportCommitService
from clinic_import.logging.logger import Log
from clinic_import.upload.exceptions import MissingUploadFile
from clinic_import.upload.models import ClinicContext
from clinic_import.upload.orchestrator import UploadOrchestrator
from clinic_import.upload.storage import UPLOAD_FIELD_NAME

router = APIRouter()


class ProcessImportRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    extract_path: str
    selected_datasets: dict[str, bool] | None = None
    original_file_name: str | None = None
    file_size: int | None = None


def _commit_service(request: Request) -> ImportCommitService:
    service: ImportCommitService | None = request.app.state.commit_service
    if service is None:
        raise CommitUnavailableError("Import processing is not configured for this deployment")
    return service


@router.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/import-export/upload")
def upload_import_file(
    request: Request,
    import_file: UploadFile | None = File(None, alias=UPLOAD_FIELD_NAME),
    import_type: str | None = Form(None, alias="type"),
    clinic: ClinicContext = Depends(get_clinic),
) -> dict[str, Any]:
    """Receive a CSV, Excel or ChiroTouch ZIP upload and return its preview."""
    if import_file is None or not import_file.filename:
        raise MissingUploadFile("No file uploaded")

    Log.info(
        f"Upload received: {import_file.filename}",
        clinic_id=clinic.clinic_id,
        type=import_type,
    )
    orchestrator: UploadOrchestrator = request.app.state.orchestrator
    result = orchestrator.process_upload(
        import_file.filename,
        import_file.file,
        clinic,
    )
    return serialize_upload_result(result)


@router.post("/import-export/process")
def process_import(
    body: ProcessImportRequest,
    request: Request,
    clinic: ClinicContext = Depends(get_clinic),
) -> dict[str, Any]:
    """Commit a previously previewed ChiroTouch export."""
    service = _commit_service(request)
    outcome = service.process(
        body.extract_path,
        clinic,
        SelectedDatasets.from_payload(body.selected_datasets),
        original_file_name=body.original_file_name,
        file_size=body.file_size,
    )
    return serialize_commit_outcome(outcome)


@router.delete("/import-export/upload/{extract_path}", status_code=204)
def discard_import(
    extract_path: str,
    request: Request,
    clinic: ClinicContext = Depends(get_clinic),
) -> Response:
    """Drop the extracted files of a preview the user cancelled."""
    Log.info(f"Discarding extraction {extract_path}", clinic_id=clinic.clinic_id)
    orchestrator: UploadOrchestrator = request.app.state.orchestrator
    orchestrator.discard(extract_path)
    return Response(status_code=204)
