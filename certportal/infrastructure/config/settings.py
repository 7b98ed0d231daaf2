from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

WORKFLOW_VARIANTS = ("two_stage", "four_stage")
NOTIFICATION_BACKENDS = ("log", "redis")


class Settings(BaseSettings):
    # App
    app_name: str = "Certificate Portal"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False
    store_timeout_seconds: float = 5.0  # Upper bound for any single store call

    # Security
    secret_key: str = ""  # Loaded from environment, validated in model_validator
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours
    token_issuer: str | None = None  # Checked against "iss" when set
    token_audience: str | None = None  # Checked against "aud" when set
    certificate_signing_key: str | None = None  # Falls back to secret_key

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request handling
    request_timeout_seconds: float = 30.0
    max_request_size: int = 10 * 1024 * 1024  # 10MB

    # Rate limiting (public certificate verification)
    rate_limit_enabled: bool = True
    verify_rate_limit: str = "30/minute"

    # Workflow
    workflow_variant: str = "two_stage"  # Options: "two_stage", "four_stage"
    certificate_validity_days: int | None = None  # None = certificates never expire

    # Storage
    storage_backend: str = "local"  # Options: "local", "s3"
    storage_root: str = "/var/certportal/storage"  # For local backend
    s3_bucket: str | None = None  # Required for S3 backend
    s3_region: str = "ap-south-1"
    s3_endpoint_url: str | None = None  # For MinIO/LocalStack
    s3_access_key: str | None = None  # Optional, uses IAM role if not provided
    s3_secret_key: str | None = None  # Optional, uses IAM role if not provided
    max_upload_size: int = 10 * 1024 * 1024  # 10MB default
    allowed_mime_types: str = "application/pdf,image/jpeg,image/png"  # Or "*/*"

    # Redis (role cache + notification channel)
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None

    # Cache TTL (Time-To-Live) in seconds
    cache_ttl_roles: int = 300  # 5 minutes

    # Notifications
    notification_backend: str = "log"  # Options: "log", "redis"
    notification_channel_prefix: str = "application_status"

    # OpenTelemetry Distributed Tracing
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"  # Options: "console", "otlp", "none"
    telemetry_otlp_endpoint: str | None = None  # e.g., "http://localhost:4317"
    telemetry_sample_rate: float = 1.0  # Sampling rate (0.0-1.0, 1.0 = 100%)

    @model_validator(mode="after")
    def validate_config(self) -> "Settings":
        """Validate required secrets, storage backend and workflow options"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Generate with: openssl rand -hex 32")

        if self.storage_backend == "s3":
            if not self.s3_bucket:
                raise ValueError(
                    "s3_bucket is required when storage_backend is 's3'. "
                    "Set S3_BUCKET environment variable or update .env file."
                )
        elif self.storage_backend != "local":
            raise ValueError(
                f"Invalid storage_backend '{self.storage_backend}'. "
                f"Must be one of: 'local', 's3'"
            )

        if self.workflow_variant not in WORKFLOW_VARIANTS:
            raise ValueError(
                f"Invalid workflow_variant '{self.workflow_variant}'. "
                f"Must be one of: {', '.join(WORKFLOW_VARIANTS)}"
            )
        if self.notification_backend not in NOTIFICATION_BACKENDS:
            raise ValueError(
                f"Invalid notification_backend '{self.notification_backend}'. "
                f"Must be one of: {', '.join(NOTIFICATION_BACKENDS)}"
            )
        if self.notification_backend == "redis" and not self.redis_enabled:
            raise ValueError("notification_backend 'redis' requires REDIS_ENABLED=true")
        if self.certificate_validity_days is not None and self.certificate_validity_days <= 0:
            raise ValueError("certificate_validity_days must be positive when set")
        return self

    @property
    def signing_key(self) -> str:
        return self.certificate_signing_key or self.secret_key

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
