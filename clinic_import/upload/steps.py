from contextlib import closing

from clinic_import.archive.materializer import EntryMaterializer
from clinic_import.archive.reader import BaseArchiveReader
from clinic_import.logging.logger import Log
from clinic_import.preview.aggregator import TabularPreviewAggregator
from clinic_import.preview.inventory import DocumentInventorySummarizer
from clinic_import.preview.models import ExportPreview
from clinic_import.tabular.factory import TableReaderFactory
from clinic_import.taxonomy.classifier import TaxonomyClassifier
from clinic_import.taxonomy.models import Bucket
from clinic_import.upload.exceptions import UnrecognizedExportStructure
from clinic_import.upload.models import ImportPreview, TabularUploadPreview, UploadState
from clinic_import.upload.pipeline import UploadContext, UploadStep
from clinic_import.upload.storage import UploadStorage

UNRECOGNIZED_EXPORT_MESSAGE = (
    "Invalid ChiroTouch export structure. Expected folders like 00_Tables, "
    "01_LedgerHistory, 02_ScannedDocs or 03_ChartNotes."
)


class ParseTableStep(UploadStep):
    def __init__(self, reader_factory: TableReaderFactory) -> None:
        self._reader_factory = reader_factory

    def run(self, context: UploadContext) -> UploadContext:
        reader = self._reader_factory.create(context.upload.extension)
        context.rows = reader.read(context.upload.path)
        Log.info(
            f"Parsed {len(context.rows)} rows from {context.upload.original_filename}",
            upload_id=context.upload.upload_id,
        )
        return context


class BuildTabularPreviewStep(UploadStep):
    def __init__(self, preview_rows: int = 10) -> None:
        self._preview_rows = preview_rows

    def run(self, context: UploadContext) -> UploadContext:
        rows = context.rows
        context.result = TabularUploadPreview(
            upload=context.upload,
            total_rows=len(rows),
            preview=rows[: self._preview_rows],
            columns=list(rows[0]) if rows else [],
            data=rows,
        )
        return context


class CreateScratchDirStep(UploadStep):
    def __init__(self, storage: UploadStorage) -> None:
        self._storage = storage

    def run(self, context: UploadContext) -> UploadContext:
        context.scratch_dir = self._storage.create_scratch_dir()
        Log.info(
            f"Extracting ZIP to {context.scratch_dir.name}",
            upload_id=context.upload.upload_id,
        )
        return context


class ExtractArchiveStep(UploadStep):
    def __init__(self, reader: BaseArchiveReader, materializer: EntryMaterializer) -> None:
        self._reader = reader
        self._materializer = materializer

    def run(self, context: UploadContext) -> UploadContext:
        if context.scratch_dir is None:
            raise ValueError("UploadContext.scratch_dir must be set before extraction")
        with closing(self._reader.open(context.upload.path)) as entries:
            context.materialized = self._materializer.materialize(entries, context.scratch_dir)
        return context


class ClassifyStep(UploadStep):
    def __init__(self, classifier: TaxonomyClassifier) -> None:
        self._classifier = classifier

    def run(self, context: UploadContext) -> UploadContext:
        context.taxonomy = self._classifier.classify(context.materialized)
        return context


class RequireRecognizedExportStep(UploadStep):
    def run(self, context: UploadContext) -> UploadContext:
        if context.taxonomy is None or not context.taxonomy.is_recognized_export:
            raise UnrecognizedExportStructure(UNRECOGNIZED_EXPORT_MESSAGE)
        return context


class AggregateTablesStep(UploadStep):
    def __init__(self, aggregator: TabularPreviewAggregator) -> None:
        self._aggregator = aggregator

    def run(self, context: UploadContext) -> UploadContext:
        if context.taxonomy is None:
            raise ValueError("UploadContext.taxonomy must be set before aggregation")
        context.tabular_preview = self._aggregator.aggregate(context.taxonomy)
        return context


class SummarizeDocumentsStep(UploadStep):
    def __init__(self, summarizer: DocumentInventorySummarizer) -> None:
        self._summarizer = summarizer

    def run(self, context: UploadContext) -> UploadContext:
        if context.taxonomy is None:
            raise ValueError("UploadContext.taxonomy must be set before summarizing documents")
        context.chart_notes = self._summarizer.summarize(
            context.taxonomy.files(Bucket.CHART_NOTES)
        )
        context.scanned_docs = self._summarizer.summarize(
            context.taxonomy.files(Bucket.SCANNED_DOCS)
        )
        return context


class BuildImportPreviewStep(UploadStep):
    def run(self, context: UploadContext) -> UploadContext:
        if (
            context.taxonomy is None
            or context.tabular_preview is None
            or context.chart_notes is None
            or context.scanned_docs is None
            or context.scratch_dir is None
        ):
            raise ValueError("UploadContext is missing preview parts")
        tabular = context.tabular_preview
        context.result = ImportPreview(
            upload=context.upload,
            structure=context.taxonomy,
            preview=ExportPreview(
                patients=tabular.patients,
                appointments=tabular.appointments,
                ledger=tabular.ledger,
                chart_notes=context.chart_notes,
                scanned_docs=context.scanned_docs,
                failures=tabular.failures,
            ),
            extract_path=context.scratch_dir.name,
        )
        return context


class DiscardUploadStep(UploadStep):
    """Deletes the received file once its content has been consumed."""

    def __init__(self, storage: UploadStorage) -> None:
        self._storage = storage

    def run(self, context: UploadContext) -> UploadContext:
        self._storage.discard_upload(context.upload.path)
        return context


class CleanupFailedUploadStep(UploadStep):
    """Deletes the received file and any scratch tree after a failure."""

    def __init__(self, storage: UploadStorage) -> None:
        self._storage = storage

    def run(self, context: UploadContext) -> UploadContext:
        context.state = UploadState.FAILED
        self._storage.discard_upload(context.upload.path)
        self._storage.discard_tree(context.scratch_dir)
        Log.warning(
            f"Upload {context.upload.upload_id} failed: {context.error_message}",
            scratch=context.scratch_dir.name if context.scratch_dir else None,
        )
        return context
