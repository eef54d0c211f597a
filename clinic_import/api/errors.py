from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from clinic_import.api.auth import AuthenticationError
from clinic_import.archive.exceptions import ArchiveError, ArchiveTooLargeError
from clinic_import.commit.exceptions import CommitUnavailableError
from clinic_import.logging.logger import Log
from clinic_import.tabular.exceptions import TableParseError
from clinic_import.upload.exceptions import UploadError

UPLOAD_FAILED_MESSAGE = "Upload failed. Please try again."
IMPORT_FAILED_MESSAGE = "Import failed. Please try again."


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def handle_upload_error(request: Request, exc: UploadError) -> JSONResponse:
    Log.warning(f"Upload rejected: {exc}", path=request.url.path, status=exc.status_code)
    return _failure(exc.status_code, str(exc))


async def handle_archive_error(request: Request, exc: ArchiveError) -> JSONResponse:
    Log.warning(f"Archive rejected: {exc}", path=request.url.path)
    status_code = 413 if isinstance(exc, ArchiveTooLargeError) else 400
    return _failure(status_code, str(exc))


async def handle_table_error(request: Request, exc: TableParseError) -> JSONResponse:
    Log.warning(f"Table could not be parsed: {exc}", path=request.url.path)
    return _failure(400, str(exc))


async def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return _failure(401, str(exc))


async def handle_commit_unavailable(request: Request, exc: CommitUnavailableError) -> JSONResponse:
    return _failure(503, str(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    Log.exception(f"Unexpected error: {exc}", path=request.url.path)
    if request.url.path.endswith("/process"):
        return _failure(500, IMPORT_FAILED_MESSAGE)
    return _failure(500, UPLOAD_FAILED_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(UploadError, handle_upload_error)
    app.add_exception_handler(ArchiveError, handle_archive_error)
    app.add_exception_handler(TableParseError, handle_table_error)
    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(CommitUnavailableError, handle_commit_unavailable)
    app.add_exception_handler(Exception, handle_unexpected_error)
