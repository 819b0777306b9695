"""
Settings for the API, the cleanup task and the CLI.

Values come from the environment or a local .env file; names are the
upper-cased field names (DATABASE_URL, QR_UPLOAD_TTL_SECONDS, ...).
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "udyoga_user"
    postgres_password: str = "password"
    postgres_db: str = "udyoga_setu"

    # Full SQLAlchemy URL, overrides the postgres_* parts when set
    database_url: Optional[str] = None

    # MongoDB (GridFS object storage)
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db: str = "udyoga_files"
    mongodb_timeout_ms: int = 5000

    # JWT Auth
    jwt_secret_key: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440

    # Public origin used for QR codes and blob URLs
    public_base_url: str = "http://localhost:8000"

    # QR upload handoff
    qr_upload_ttl_seconds: int = 300
    qr_poll_interval_seconds: float = 2.0
    upload_cache_ttl_minutes: int = 30
    upload_cleanup_interval_minutes: int = 30
    max_upload_size_mb: int = 5

    # Browser origins allowed to call the API (JSON list in the environment)
    cors_origins: List[str] = ["*"]

    # App
    auto_create_tables: bool = True
    log_level: str = "INFO"
    debug: bool = False

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
