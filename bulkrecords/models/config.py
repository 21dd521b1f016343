"""Bulk client configuration using pydantic-settings, plus per-call options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bulkrecords.models.errors import RECORD_NOT_FOUND, RECORD_NOT_FOUND_CODE

if TYPE_CHECKING:
    import threading

    from bulkrecords.services.protocols import ProgressSinkProtocol

SERVICE_MAX_BATCH_SIZE = 1000


class BulkClientConfig(BaseSettings):
    """Engine configuration loaded from ``BULK_*`` environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="BULK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_batch_size: int = 100
    max_batch_size: int = SERVICE_MAX_BATCH_SIZE
    retry_attempts: int = 3
    retry_delay_ms: int = 1000
    max_retry_delay_ms: int = 30000
    retry_jitter_ratio: float = 0.0
    enable_retry_on_failure: bool = True
    batch_timeout_ms: int = 300000
    max_concurrent_chunks: int = 8
    enable_progress_reporting: bool = False
    not_found_fault_codes: list[int | str] = [RECORD_NOT_FOUND_CODE, RECORD_NOT_FOUND]
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("max_batch_size")
    @classmethod
    def validate_max_batch_size(cls, value: int) -> int:
        """Max batch size is bounded by the service hard cap."""
        if value < 1 or value > SERVICE_MAX_BATCH_SIZE:
            msg = f"max_batch_size must be between 1 and {SERVICE_MAX_BATCH_SIZE}"
            raise ValueError(msg)
        return value

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, value: int) -> int:
        """Retry attempts must be between 0 and 10."""
        if value < 0 or value > 10:
            msg = "retry_attempts must be between 0 and 10"
            raise ValueError(msg)
        return value

    @field_validator("retry_delay_ms", "max_retry_delay_ms")
    @classmethod
    def validate_delays(cls, value: int) -> int:
        """Delays must be non-negative."""
        if value < 0:
            msg = "retry delays must be non-negative"
            raise ValueError(msg)
        return value

    @field_validator("retry_jitter_ratio")
    @classmethod
    def validate_jitter(cls, value: float) -> float:
        """Jitter ratio must be between 0.0 and 1.0."""
        if value < 0.0 or value > 1.0:
            msg = "retry_jitter_ratio must be between 0.0 and 1.0"
            raise ValueError(msg)
        return value

    @field_validator("batch_timeout_ms")
    @classmethod
    def validate_batch_timeout(cls, value: int) -> int:
        """Batch timeout must be positive."""
        if value <= 0:
            msg = "batch_timeout_ms must be positive"
            raise ValueError(msg)
        return value

    @field_validator("max_concurrent_chunks")
    @classmethod
    def validate_max_concurrent_chunks(cls, value: int) -> int:
        """Worker pool size must be between 1 and 64."""
        if value < 1 or value > 64:
            msg = "max_concurrent_chunks must be between 1 and 64"
            raise ValueError(msg)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Log level must be a valid Python logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            msg = f"log_level must be one of {', '.join(sorted(valid_levels))}"
            raise ValueError(msg)
        return upper_value

    @model_validator(mode="after")
    def validate_default_batch_size(self) -> BulkClientConfig:
        """Default batch size must fit under the max batch size."""
        if self.default_batch_size < 1 or self.default_batch_size > self.max_batch_size:
            msg = (
                f"default_batch_size ({self.default_batch_size}) must be between 1 "
                f"and max_batch_size ({self.max_batch_size})"
            )
            raise ValueError(msg)
        return self

    @property
    def effective_retry_attempts(self) -> int:
        return self.retry_attempts if self.enable_retry_on_failure else 0


@dataclass
class BatchOptions:
    """Per-call overrides for a single batch operation."""

    batch_size: int | None = None
    max_retries: int | None = None
    retry_delay_ms: int | None = None
    timeout_ms: int | None = None
    progress: ProgressSinkProtocol | None = None
    enable_progress_reporting: bool | None = None
    cancel_event: threading.Event | None = None

    def __post_init__(self) -> None:
        if self.max_retries is not None and not 0 <= self.max_retries <= 10:
            msg = f"max_retries must be between 0 and 10, got {self.max_retries}"
            raise ValueError(msg)
        if self.retry_delay_ms is not None and self.retry_delay_ms < 0:
            msg = f"retry_delay_ms must be non-negative, got {self.retry_delay_ms}"
            raise ValueError(msg)
        if self.timeout_ms is not None and self.timeout_ms <= 0:
            msg = f"timeout_ms must be positive, got {self.timeout_ms}"
            raise ValueError(msg)

    @property
    def progress_enabled(self) -> bool:
        """A progress sink receives snapshots unless explicitly switched off."""
        return self.progress is not None and self.enable_progress_reporting is not False
