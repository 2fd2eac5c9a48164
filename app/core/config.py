"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend selections and their required fields are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import (
    APPROVAL_ESCALATION_DELAY_HOURS,
    APPROVAL_QUORUM,
    APPROVAL_REMINDER_DELAY_HOURS,
    MAX_UPLOAD_SIZE_BYTES,
)


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults suitable for local development with the
    memory backend; validate_backends enforces what each backend needs.
    """

    # App
    app_name: str = "docflow"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database: "postgres" (SQLAlchemy + Alembic) or "memory" (in-process, dev/tests)
    database_backend: str = "memory"
    database_url: str = ""
    database_echo: bool = False
    # Optional pool/driver overrides (None = use defaults in database.py)
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None
    db_disable_jit: bool = True

    # Storage
    storage_backend: str = "local"
    storage_root: str = "/var/docflow/storage"
    s3_bucket: str | None = None
    s3_region: str = "us-east-1"
    s3_endpoint_url: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: SecretStr | None = None
    s3_force_path_style: bool = False
    max_upload_size: int = MAX_UPLOAD_SIZE_BYTES

    # Malware scanner: "clamav" (clamd over TCP) or "disabled" (records BYPASSED)
    scanner_backend: str = "clamav"
    clamav_host: str = "localhost"
    clamav_port: int = 3310
    clamav_timeout_seconds: float = 30.0
    clamav_chunk_size: int = 64 * 1024

    # Redis (delayed job queue). Disabled = in-memory queue, jobs lost on restart.
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_max_connections: int = 10

    # Approval workflow
    approval_quorum: int = APPROVAL_QUORUM
    approval_reminder_delay_hours: float = APPROVAL_REMINDER_DELAY_HOURS
    approval_escalation_delay_hours: float = APPROVAL_ESCALATION_DELAY_HOURS
    approval_worker_concurrency: int = 5
    approval_worker_poll_seconds: float = 5.0
    approval_workers_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate backend selections and the fields each one requires.

        - Postgres: DATABASE_URL required.
        - S3 storage: S3_BUCKET required.
        - Approval policy values must be positive; escalation after reminder.
        """
        if self.database_backend == "postgres":
            if not self.database_url:
                raise ValueError(
                    "DATABASE_URL is required when database_backend is 'postgres'. "
                    "Set in environment or .env file."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'postgres' or 'memory', got: {self.database_backend!r}"
            )
        if self.storage_backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif self.storage_backend != "local":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                "Must be one of: 'local', 's3'"
            )
        if self.scanner_backend not in ("clamav", "disabled"):
            raise ValueError(
                f"Invalid scanner_backend '{self.scanner_backend}'. "
                "Must be one of: 'clamav', 'disabled'"
            )
        if self.max_upload_size <= 0:
            raise ValueError("max_upload_size must be positive")
        if self.approval_quorum < 1:
            raise ValueError("approval_quorum must be at least 1")
        if self.approval_worker_concurrency < 1:
            raise ValueError("approval_worker_concurrency must be at least 1")
        if self.approval_reminder_delay_hours <= 0:
            raise ValueError("approval_reminder_delay_hours must be positive")
        if self.approval_escalation_delay_hours <= self.approval_reminder_delay_hours:
            raise ValueError(
                "approval_escalation_delay_hours must be greater than "
                "approval_reminder_delay_hours"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
