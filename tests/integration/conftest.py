import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from clinic_import.config.settings import Settings
from clinic_import.database.connection import close_pool, get_connection, init_pool
from clinic_import.upload.models import ClinicContext

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "clinic_import" / "database" / "schema.sql"


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "clinic_test")
    return Settings()


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        psycopg.connect(
            host=test_settings.db_host,
            port=test_settings.db_port,
            dbname=test_settings.db_database,
            user=test_settings.db_username,
            password=test_settings.db_password,
            connect_timeout=3,
        ).close()
    except psycopg.Error as e:
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run these tests")
    init_pool(test_settings)
    with get_connection() as conn:
        conn.execute(SCHEMA_PATH.read_text())
        conn.commit()
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def clinic() -> ClinicContext:
    return ClinicContext(clinic_id="clinic-it", user_id="user-it", user_name="Integration")


@pytest.fixture
def integration_cleanup(integration_pool: None) -> Generator[list[int], None, None]:
    """Collects import_history ids; records and attachments cascade on delete."""
    import_ids: list[int] = []
    yield import_ids
    if not import_ids:
        return
    with get_connection() as conn:
        with conn.cursor() as cur:
            for import_id in import_ids:
                cur.execute("DELETE FROM import_history WHERE id = %s", (import_id,))
        conn.commit()
