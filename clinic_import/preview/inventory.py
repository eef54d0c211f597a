from collections.abc import Sequence

from clinic_import.archive.models import MaterializedFile
from clinic_import.preview.models import DocumentInventorySection, DocumentListing


class DocumentInventorySummarizer:
    """Counts binary documents and lists the first few; content is never read."""

    def __init__(self, listing_size: int = 10) -> None:
        self._listing_size = listing_size

    def summarize(self, files: Sequence[MaterializedFile]) -> DocumentInventorySection:
        return DocumentInventorySection(
            count=len(files),
            files=[
                DocumentListing(file_name=file.file_name, size_bytes=file.size_bytes)
                for file in files[: self._listing_size]
            ],
        )
