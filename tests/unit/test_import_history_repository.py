from unittest.mock import MagicMock, patch

import pytest

from clinic_import.commit.models import ImportIssue, ImportResult
from clinic_import.database.models import ImportHistoryRecord
from clinic_import.database.repositories.import_history_repository import (
    ImportHistoryRepository,
)
from clinic_import.upload.models import ClinicContext

CLINIC = ClinicContext(clinic_id="clinic-1", user_id="user-1", user_name="Dr. Who")
_TARGET = "clinic_import.database.repositories.import_history_repository.get_connection"


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


class TestCreate:
    @patch(_TARGET)
    def test_inserts_processing_row_and_returns_id(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = (42,)

        import_id = ImportHistoryRepository().create(CLINIC, "export.zip", 2048)

        assert import_id == 42
        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO import_history" in sql
        assert "'processing'" in sql
        assert params == ("clinic-1", "chirotouch-full", "export.zip", 2048, "Dr. Who", "user-1")
        mock_conn.commit.assert_called_once()

    @patch(_TARGET)
    def test_raises_when_no_id_returned(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(RuntimeError, match="returned no id"):
            ImportHistoryRepository().create(CLINIC, "export.zip", 0)


class TestStatusUpdates:
    @patch(_TARGET)
    def test_mark_completed_stores_result_json(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)
        result = ImportResult()
        result.summary.success_count = 2
        result.warnings = [ImportIssue(type="missing_patient", message="m", file_name="n.pdf")]

        ImportHistoryRepository().mark_completed(9, result)

        sql, params = mock_conn.execute.call_args.args
        assert "status = 'completed'" in sql
        assert params[0].obj["successCount"] == 2
        assert params[3].obj == [{"type": "missing_patient", "message": "m", "fileName": "n.pdf"}]
        assert params[-1] == 9
        mock_conn.commit.assert_called_once()

    @patch(_TARGET)
    def test_mark_failed_stores_error(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)

        ImportHistoryRepository().mark_failed(9, "sink unavailable")

        sql, params = mock_conn.execute.call_args.args
        assert "status = 'failed'" in sql
        assert params == ("sink unavailable", 9)


class TestFindById:
    @patch(_TARGET)
    def test_returns_record(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = {
            "id": 3,
            "clinic_id": "clinic-1",
            "import_type": "chirotouch-full",
            "original_file_name": "export.zip",
            "file_size": 10,
            "imported_by": "Dr. Who",
            "imported_by_user_id": "user-1",
            "status": "completed",
            "summary": {"successCount": 1},
            "chirotouch_data": None,
            "error_message": None,
            "processing_duration_ms": 15,
            "created_at": None,
            "updated_at": None,
        }

        record = ImportHistoryRepository().find_by_id(3)

        assert isinstance(record, ImportHistoryRecord)
        assert record.status == "completed"
        assert record.summary == {"successCount": 1}

    @patch(_TARGET)
    def test_returns_none_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        assert ImportHistoryRepository().find_by_id(404) is None
