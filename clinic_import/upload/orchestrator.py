from collections.abc import Sequence
from typing import BinaryIO

from clinic_import.archive.materializer import EntryMaterializer
from clinic_import.archive.reader import ZipArchiveReader
from clinic_import.config.settings import Settings
from clinic_import.logging.logger import Log
from clinic_import.preview.aggregator import TabularPreviewAggregator
from clinic_import.preview.inventory import DocumentInventorySummarizer
from clinic_import.tabular.factory import TableReaderFactory
from clinic_import.taxonomy.classifier import TaxonomyClassifier
from clinic_import.upload.exceptions import UnsupportedUpload
from clinic_import.upload.models import (
    ClinicContext,
    ImportPreview,
    StoredUpload,
    TabularUploadPreview,
    UploadState,
)
from clinic_import.upload.pipeline import UploadContext, UploadStep
from clinic_import.upload.steps import (
    AggregateTablesStep,
    BuildImportPreviewStep,
    BuildTabularPreviewStep,
    ClassifyStep,
    CleanupFailedUploadStep,
    CreateScratchDirStep,
    DiscardUploadStep,
    ExtractArchiveStep,
    ParseTableStep,
    RequireRecognizedExportStep,
    SummarizeDocumentsStep,
)
from clinic_import.upload.storage import UploadStorage

_PATH_BY_EXTENSION: dict[str, UploadState] = {
    ".csv": UploadState.CSV_PATH,
    ".xlsx": UploadState.EXCEL_PATH,
    ".xls": UploadState.EXCEL_PATH,
    ".zip": UploadState.ZIP_PATH,
}


class UploadOrchestrator:
    """Drives one upload from the received bytes to a preview.

    Receiving: the file is streamed to the uploads root under the size bound.
    Dispatching: the extension picks the tabular steps or the ZIP steps.
    Any failure runs the failed step, which removes the upload and any
    scratch tree, and then re-raises.
    """

    def __init__(
        self,
        storage: UploadStorage,
        tabular_steps: Sequence[UploadStep],
        zip_steps: Sequence[UploadStep],
        failed_step: UploadStep,
    ) -> None:
        self._storage = storage
        self._tabular_steps = list(tabular_steps)
        self._zip_steps = list(zip_steps)
        self._failed_step = failed_step

    def process_upload(
        self,
        filename: str,
        stream: BinaryIO,
        clinic: ClinicContext,
    ) -> TabularUploadPreview | ImportPreview:
        self._storage.validate_extension(filename)
        upload = self._storage.save(filename, stream)
        return self.handle(upload, clinic)

    def handle(
        self, upload: StoredUpload, clinic: ClinicContext
    ) -> TabularUploadPreview | ImportPreview:
        context = UploadContext(upload=upload, clinic=clinic)
        try:
            for step in self._dispatch(context):
                context = step.run(context)
        except BaseException as exc:
            context.error_message = str(exc) or type(exc).__name__
            self._failed_step.run(context)
            raise

        if context.result is None:
            raise RuntimeError(f"Upload {upload.upload_id} finished without a preview")
        Log.info(
            f"Upload {upload.upload_id} previewed",
            clinic_id=clinic.clinic_id,
            path=context.state.value,
        )
        context.state = UploadState.RESPONDING
        return context.result

    def discard(self, extract_path: str) -> None:
        """Delete the scratch tree of a preview that will not be committed."""
        scratch = self._storage.resolve_extraction(extract_path)
        self._storage.discard_tree(scratch)

    def _dispatch(self, context: UploadContext) -> list[UploadStep]:
        state = _PATH_BY_EXTENSION.get(context.upload.extension)
        if state is None:
            raise UnsupportedUpload("Only CSV, Excel, and ZIP files are allowed")
        context.state = state
        Log.info(
            f"Dispatching {context.upload.original_filename} to {state.value} handling",
            upload_id=context.upload.upload_id,
        )
        if state is UploadState.ZIP_PATH:
            return self._zip_steps
        return self._tabular_steps


def build_orchestrator(settings: Settings) -> UploadOrchestrator:
    """Build an UploadOrchestrator with the readers and limits from settings."""
    storage = UploadStorage(settings)
    reader_factory = TableReaderFactory(settings)
    aggregator = TabularPreviewAggregator(
        reader=reader_factory.create(".csv"),
        sample_size=settings.preview_sample_size,
    )
    materializer = EntryMaterializer(
        chunk_bytes=settings.copy_chunk_bytes,
        max_total_bytes=settings.max_extracted_bytes,
    )
    tabular_steps: list[UploadStep] = [
        ParseTableStep(reader_factory),
        BuildTabularPreviewStep(preview_rows=settings.tabular_preview_rows),
        DiscardUploadStep(storage),
    ]
    zip_steps: list[UploadStep] = [
        CreateScratchDirStep(storage),
        ExtractArchiveStep(ZipArchiveReader(), materializer),
        DiscardUploadStep(storage),
        ClassifyStep(TaxonomyClassifier()),
        RequireRecognizedExportStep(),
        AggregateTablesStep(aggregator),
        SummarizeDocumentsStep(
            DocumentInventorySummarizer(listing_size=settings.inventory_listing_size)
        ),
        BuildImportPreviewStep(),
    ]
    return UploadOrchestrator(
        storage=storage,
        tabular_steps=tabular_steps,
        zip_steps=zip_steps,
        failed_step=CleanupFailedUploadStep(storage),
    )
