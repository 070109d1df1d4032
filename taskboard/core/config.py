"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Backend-specific requirements (Firestore credentials,
storage root, Redis) are validated at load time.
"""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment and .env.

    Defaults run fully in memory (no Firestore, no Redis) with local
    filesystem blob storage.
    """

    # App
    app_name: str = "taskboard"
    app_version: str = "1.0.0"
    debug: bool = False

    # Task persistence: "memory" (process-local) or "firestore" (REST API)
    task_backend: str = "memory"

    # Firebase / Firestore: use key (env) or path (file).
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None
    firestore_timeout_seconds: float = 30.0

    # Blob storage for task attachments and submission files
    storage_backend: str = "local"
    storage_root: str = "/var/taskboard/storage"
    storage_base_url: str | None = None
    max_upload_size: int = 25 * 1024 * 1024  # 25MB

    # Change feed for watchers: "memory" (in-process) or "redis" (pub/sub)
    change_feed_backend: str = "memory"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    # Calendar used for the overdue boundary (IANA name, e.g. "Asia/Manila")
    calendar_timezone: str = "UTC"

    # Compare-and-append attempts for a submission under concurrent writers
    submission_append_retries: int = 5

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_backends(self) -> "Settings":
        """Validate backend selections and their required settings.

        - Firestore: FIREBASE_SERVICE_ACCOUNT_KEY or FIREBASE_SERVICE_ACCOUNT_PATH required.
        - Local storage: STORAGE_ROOT required.
        """
        if self.task_backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When task_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
        elif self.task_backend != "memory":
            raise ValueError(
                f"task_backend must be 'memory' or 'firestore', got: {self.task_backend!r}"
            )
        if self.storage_backend != "local":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. Must be: 'local'"
            )
        if not self.storage_root:
            raise ValueError("STORAGE_ROOT is required for the local storage backend.")
        if self.change_feed_backend not in ("memory", "redis"):
            raise ValueError(
                f"change_feed_backend must be 'memory' or 'redis', got: {self.change_feed_backend!r}"
            )
        try:
            ZoneInfo(self.calendar_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(
                f"Unknown calendar_timezone: {self.calendar_timezone!r}"
            ) from e
        if self.submission_append_retries < 1:
            raise ValueError("submission_append_retries must be at least 1")
        return self

    @property
    def calendar_tz(self) -> ZoneInfo:
        """Timezone whose calendar days define the overdue boundary."""
        return ZoneInfo(self.calendar_timezone)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
