import re
from collections.abc import Iterable
from typing import ClassVar

from clinic_import.archive.models import MaterializedFile
from clinic_import.logging.logger import Log
from clinic_import.taxonomy.models import Bucket, Taxonomy


class TaxonomyClassifier:
    """Buckets extracted files by their top-level export folder.

    Patterns are tried in order and the first match wins, so a file lands in
    at most one bucket. Files outside the known folders are left out.
    """

    PATTERNS: ClassVar[list[tuple[Bucket, re.Pattern[str]]]] = [
        (Bucket.TABLES, re.compile(r"^00_Tables/", re.IGNORECASE)),
        (Bucket.LEDGER_HISTORY, re.compile(r"^01_LedgerHistory/", re.IGNORECASE)),
        (Bucket.STATEMENTS, re.compile(r"^01_Statements/", re.IGNORECASE)),
        (Bucket.SCANNED_DOCS, re.compile(r"^02_ScannedDocs/", re.IGNORECASE)),
        (Bucket.CHART_NOTES, re.compile(r"^03_ChartNotes/", re.IGNORECASE)),
    ]

    def classify(self, files: Iterable[MaterializedFile]) -> Taxonomy:
        taxonomy = Taxonomy()
        unclassified = 0
        for file in files:
            bucket = self.bucket_for(file.relative_path)
            if bucket is None:
                unclassified += 1
                continue
            taxonomy.buckets[bucket].append(file)

        Log.info(
            "Classified export structure",
            recognized=taxonomy.is_recognized_export,
            unclassified=unclassified,
            **{bucket.value: len(taxonomy.buckets[bucket]) for bucket in Bucket},
        )
        return taxonomy

    @classmethod
    def bucket_for(cls, relative_path: str) -> Bucket | None:
        for bucket, pattern in cls.PATTERNS:
            if pattern.match(relative_path):
                return bucket
        return None
