"""Per-record outcomes and per-chunk results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from bulkrecords.models.operation import Record, RecordRef


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class ErrorSeverity(StrEnum):
    """How serious a recorded batch error is."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class BatchError(BaseModel):
    """An error captured while executing a chunk.

    ``request_index`` is the position inside the chunk, or ``None`` when the
    whole chunk failed.
    """

    chunk_number: int
    request_index: int | None = None
    error_code: str = ""
    error_message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    target: RecordRef | None = None
    exception_type: str | None = None
    occurred_at: datetime = Field(default_factory=_utc_now)

    @property
    def summary(self) -> str:
        return f"[{self.severity}] {self.error_code}: {self.error_message}"

    def __str__(self) -> str:
        return self.summary


class OutcomeStatus(StrEnum):
    """Classification of a single record outcome."""

    SUCCESS = "success"
    FAILURE = "failure"
    NOT_FOUND = "not_found"


class RecordOutcome(BaseModel):
    """Result of one operation within a chunk."""

    status: OutcomeStatus
    target: RecordRef | None = None
    created: RecordRef | None = None
    record: Record | None = None
    error: BatchError | None = None


@dataclass(frozen=True)
class ChunkResult:
    """Immutable summary of one executed chunk."""

    chunk_number: int
    operation_count: int
    success_count: int = 0
    failure_count: int = 0
    errors: tuple[BatchError, ...] = ()
    created: tuple[RecordRef, ...] = ()
    updated: tuple[RecordRef, ...] = ()
    deleted: tuple[RecordRef, ...] = ()
    retrieved: tuple[Record, ...] = ()
    not_found: tuple[RecordRef, ...] = ()
    cancelled: bool = False

    @property
    def processed_count(self) -> int:
        """Operations with a definite outcome, not-found retrievals included."""
        return self.success_count + self.failure_count + len(self.not_found)
