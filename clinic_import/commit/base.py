from abc import ABC, abstractmethod
from collections.abc import Sequence

from clinic_import.commit.models import (
    ImportResult,
    SelectedDatasets,
    StagedAttachment,
    StagedRecord,
)
from clinic_import.taxonomy.models import Taxonomy
from clinic_import.upload.models import ClinicContext


class BaseImportRecordSink(ABC):
    """Contract for where committed records and attachments are written."""

    @abstractmethod
    def store_records(
        self, import_id: int, clinic: ClinicContext, records: Sequence[StagedRecord]
    ) -> int:
        """Persist mapped rows. Returns the number stored."""

    @abstractmethod
    def store_attachments(
        self, import_id: int, clinic: ClinicContext, attachments: Sequence[StagedAttachment]
    ) -> int:
        """Persist document attachments with their content. Returns the number stored."""


class BaseImportCommitter(ABC):
    """Contract for committing a previewed export."""

    @abstractmethod
    def commit(
        self,
        import_id: int,
        taxonomy: Taxonomy,
        clinic: ClinicContext,
        datasets: SelectedDatasets,
    ) -> ImportResult:
        """Import the selected datasets of *taxonomy* and report what happened.

        Raises:
            CommitError: if the commit as a whole cannot proceed.
        """
