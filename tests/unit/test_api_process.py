from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from clinic_import.api.app import create_app
from clinic_import.commit.models import ImportIssue, ImportResult, SelectedDatasets
from clinic_import.commit.service import CommitOutcome, ImportCommitService
from clinic_import.config.settings import Settings
from clinic_import.upload.exceptions import ExtractionNotFoundError, InvalidExtractionPath

AUTH_HEADERS = {"X-Clinic-Id": "clinic-1", "X-User-Id": "user-1", "X-User-Name": "Dr. Who"}


def _client(settings: Settings, service: ImportCommitService | None) -> TestClient:
    return TestClient(create_app(settings, commit_service=service), raise_server_exceptions=False)


@pytest.fixture()
def service() -> MagicMock:
    return MagicMock(spec=ImportCommitService)


class TestProcessEndpoint:
    def test_returns_commit_outcome(self, settings: Settings, service: MagicMock) -> None:
        result = ImportResult()
        result.summary.success_count = 3
        result.errors = [ImportIssue(type="validation", message=f"bad {i}") for i in range(15)]
        service.process.return_value = CommitOutcome(import_id=11, result=result)

        response = _client(settings, service).post(
            "/import-export/process",
            json={
                "extractPath": "chirotouch-1-2",
                "selectedDatasets": {"scannedDocs": False},
                "originalFileName": "export.zip",
                "fileSize": 2048,
            },
            headers=AUTH_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["importHistoryId"] == 11
        assert body["summary"]["successCount"] == 3
        assert len(body["errors"]) == 10
        assert body["warnings"] == []
        extract_path, clinic, datasets = service.process.call_args.args
        assert extract_path == "chirotouch-1-2"
        assert clinic.user_name == "Dr. Who"
        assert datasets == SelectedDatasets(scanned_docs=False)
        assert service.process.call_args.kwargs == {
            "original_file_name": "export.zip",
            "file_size": 2048,
        }

    def test_missing_extract_path_is_a_validation_error(
        self, settings: Settings, service: MagicMock
    ) -> None:
        response = _client(settings, service).post(
            "/import-export/process", json={}, headers=AUTH_HEADERS
        )

        assert response.status_code == 422

    def test_invalid_extract_path(self, settings: Settings, service: MagicMock) -> None:
        service.process.side_effect = InvalidExtractionPath("Invalid extraction reference '../x'")

        response = _client(settings, service).post(
            "/import-export/process", json={"extractPath": "../x"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 400

    def test_unknown_extract_path(self, settings: Settings, service: MagicMock) -> None:
        service.process.side_effect = ExtractionNotFoundError("Extracted files not found.")

        response = _client(settings, service).post(
            "/import-export/process", json={"extractPath": "chirotouch-1-2"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 404

    def test_unexpected_failure_is_generic(self, settings: Settings, service: MagicMock) -> None:
        service.process.side_effect = RuntimeError("connection refused to db:5432")

        response = _client(settings, service).post(
            "/import-export/process", json={"extractPath": "chirotouch-1-2"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Import failed. Please try again."}

    def test_unavailable_without_commit_backend(self, settings: Settings) -> None:
        response = _client(settings, None).post(
            "/import-export/process", json={"extractPath": "chirotouch-1-2"}, headers=AUTH_HEADERS
        )

        assert response.status_code == 503

    def test_requires_authentication(self, settings: Settings, service: MagicMock) -> None:
        response = _client(settings, service).post(
            "/import-export/process", json={"extractPath": "chirotouch-1-2"}
        )

        assert response.status_code == 401
        service.process.assert_not_called()


class TestCreateApp:
    def test_rejects_unknown_commit_backend(self, tmp_path) -> None:
        settings = Settings(_env_file=None, uploads_root=tmp_path, commit_backend="mongo")

        with pytest.raises(ValueError, match="Choose from"):
            create_app(settings)

    def test_installs_cors_for_local_frontend(self, settings: Settings) -> None:
        app = create_app(settings)

        cors = [entry for entry in app.user_middleware if entry.cls.__name__ == "CORSMiddleware"]
        assert cors
        assert "http://localhost:3000" in settings.cors_origins
