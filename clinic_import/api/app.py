from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clinic_import.api.auth import BaseAuthProvider, GatewayHeaderAuthProvider
from clinic_import.api.errors import register_error_handlers
from clinic_import.api.limits import UploadSizeLimitMiddleware
from clinic_import.api.routes import router
from clinic_import.commit.service import ImportCommitService, build_commit_service
from clinic_import.config.settings import Settings
from clinic_import.database.connection import close_pool, init_pool
from clinic_import.logging.logger import Log
from clinic_import.upload.orchestrator import UploadOrchestrator, build_orchestrator

COMMIT_BACKEND_POSTGRES = "postgres"
COMMIT_BACKEND_NONE = "none"
COMMIT_BACKENDS = (COMMIT_BACKEND_POSTGRES, COMMIT_BACKEND_NONE)
UPLOAD_PATH = "/import-export/upload"
# Room for multipart boundaries and part headers around the file itself.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def create_app(
    settings: Settings | None = None,
    *,
    orchestrator: UploadOrchestrator | None = None,
    commit_service: ImportCommitService | None = None,
    auth_provider: BaseAuthProvider | None = None,
) -> FastAPI:
    """Build the import service application.

    Collaborators default to the ones described by *settings*; tests pass
    their own.
    """
    settings = settings or Settings()
    Log.configure(settings.log_level)

    backend = settings.commit_backend.lower()
    if backend not in COMMIT_BACKENDS:
        raise ValueError(
            f"Unknown commit backend '{settings.commit_backend}'. Choose from: {list(COMMIT_BACKENDS)}"
        )
    owns_pool = commit_service is None and backend == COMMIT_BACKEND_POSTGRES
    if owns_pool:
        commit_service = build_commit_service(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if owns_pool:
            init_pool(settings)
        try:
            yield
        finally:
            if owns_pool:
                close_pool()

    app = FastAPI(title="clinic-import", lifespan=lifespan)
    app.add_middleware(
        UploadSizeLimitMiddleware,
        path=UPLOAD_PATH,
        max_body_bytes=settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator or build_orchestrator(settings)
    app.state.commit_service = commit_service
    app.state.auth_provider = auth_provider or GatewayHeaderAuthProvider()

    register_error_handlers(app)
    app.include_router(router)

    Log.info(
        f"clinic-import ready (env={settings.app_env}, commit backend={backend})",
        uploads_root=str(settings.uploads_root),
    )
    return app
