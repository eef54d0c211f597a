from dataclasses import dataclass, field
from enum import Enum

from clinic_import.archive.models import MaterializedFile


class Bucket(str, Enum):
    """Top-level folders of a ChiroTouch export."""

    TABLES = "tables"
    LEDGER_HISTORY = "ledgerHistory"
    STATEMENTS = "statements"
    SCANNED_DOCS = "scannedDocs"
    CHART_NOTES = "chartNotes"


# Buckets that make an archive a usable export on their own.
REQUIRED_BUCKETS: tuple[Bucket, ...] = (Bucket.TABLES, Bucket.LEDGER_HISTORY)


def _empty_buckets() -> dict[Bucket, list[MaterializedFile]]:
    return {bucket: [] for bucket in Bucket}


@dataclass
class Taxonomy:
    """Materialized files grouped by export folder."""

    buckets: dict[Bucket, list[MaterializedFile]] = field(default_factory=_empty_buckets)

    @property
    def is_recognized_export(self) -> bool:
        return any(self.buckets[bucket] for bucket in REQUIRED_BUCKETS)

    def files(self, bucket: Bucket) -> list[MaterializedFile]:
        return self.buckets[bucket]
