from dataclasses import dataclass

from clinic_import.archive.materializer import list_materialized
from clinic_import.commit.base import BaseImportCommitter
from clinic_import.commit.committer import ChirotouchImportCommitter
from clinic_import.commit.models import ImportResult, SelectedDatasets
from clinic_import.config.settings import Settings
from clinic_import.database.repositories.import_history_repository import (
    ImportHistoryRepository,
)
from clinic_import.database.repositories.import_records_repository import (
    PostgresImportRecordSink,
)
from clinic_import.logging.logger import Log
from clinic_import.tabular.factory import TableReaderFactory
from clinic_import.taxonomy.classifier import TaxonomyClassifier
from clinic_import.upload.exceptions import UnrecognizedExportStructure
from clinic_import.upload.models import ClinicContext
from clinic_import.upload.steps import UNRECOGNIZED_EXPORT_MESSAGE
from clinic_import.upload.storage import UploadStorage

DEFAULT_ARCHIVE_NAME = "chirotouch-export.zip"


@dataclass
class CommitOutcome:
    import_id: int
    result: ImportResult


class ImportCommitService:
    """Commits a previewed extraction and records it in the import history.

    The scratch tree is deleted only after a successful commit, so a failed
    import can be retried with the same extraction handle.
    """

    def __init__(
        self,
        storage: UploadStorage,
        classifier: TaxonomyClassifier,
        committer: BaseImportCommitter,
        history: ImportHistoryRepository,
    ) -> None:
        self._storage = storage
        self._classifier = classifier
        self._committer = committer
        self._history = history

    def process(
        self,
        extract_path: str,
        clinic: ClinicContext,
        datasets: SelectedDatasets,
        original_file_name: str | None = None,
        file_size: int | None = None,
    ) -> CommitOutcome:
        scratch = self._storage.resolve_extraction(extract_path)
        taxonomy = self._classifier.classify(list_materialized(scratch))
        if not taxonomy.is_recognized_export:
            raise UnrecognizedExportStructure(UNRECOGNIZED_EXPORT_MESSAGE)

        import_id = self._history.create(
            clinic,
            original_file_name or DEFAULT_ARCHIVE_NAME,
            file_size or 0,
        )
        Log.info(
            f"Processing ChiroTouch import {import_id} from {extract_path}",
            clinic_id=clinic.clinic_id,
            datasets=datasets,
        )
        try:
            result = self._committer.commit(import_id, taxonomy, clinic, datasets)
        except Exception as exc:
            self._history.mark_failed(import_id, str(exc))
            Log.error(f"ChiroTouch import {import_id} failed: {exc}")
            raise

        self._history.mark_completed(import_id, result)
        self._storage.discard_tree(scratch)
        return CommitOutcome(import_id=import_id, result=result)


def build_commit_service(settings: Settings) -> ImportCommitService:
    """Build an ImportCommitService backed by Postgres."""
    reader = TableReaderFactory(settings).create(".csv")
    return ImportCommitService(
        storage=UploadStorage(settings),
        classifier=TaxonomyClassifier(),
        committer=ChirotouchImportCommitter(reader=reader, sink=PostgresImportRecordSink()),
        history=ImportHistoryRepository(),
    )
