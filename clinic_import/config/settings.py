from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    http_host: str = "0.0.0.0"
    http_port: int = 8000

    uploads_root: Path = Path("/app/uploads/imports")
    max_upload_bytes: int = Field(default=250 * 1024 * 1024, gt=0)
    max_extracted_bytes: int = Field(default=2 * 1024 * 1024 * 1024, gt=0)
    copy_chunk_bytes: int = Field(default=1024 * 1024, gt=0)

    preview_sample_size: int = Field(default=5, ge=0)
    tabular_preview_rows: int = Field(default=10, ge=0)
    inventory_listing_size: int = Field(default=10, ge=0)
    csv_encoding: str = "utf-8-sig"

    cors_allowed_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    commit_backend: str = "postgres"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "clinic"
    db_username: str = "clinic"
    db_password: str = "secret"

    @property
    def extraction_root(self) -> Path:
        """Directory holding per-request scratch extraction trees."""
        return self.uploads_root / "extracted"

    @property
    def cors_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.cors_allowed_origins.split(",")
            if origin.strip()
        ]
