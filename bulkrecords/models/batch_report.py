"""Aggregated report for one orchestrated bulk operation."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from bulkrecords.models.errors import ReportFinalizedError
from bulkrecords.models.operation import OperationKind, Record, RecordRef
from bulkrecords.models.outcome import BatchError, ChunkResult


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


def new_operation_id() -> str:
    """Correlation id such as ``BATCH-20250101-120000-1a2b3c4d``."""
    return f"BATCH-{_utc_now():%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:8]}"


class BatchReport(BaseModel):
    """Outcome of every chunk of one batch operation.

    Created empty when the operation starts and finalized exactly once by
    :meth:`mark_completed`. Counts cannot change after finalization.
    """

    model_config = ConfigDict(validate_assignment=True)

    operation_kind: OperationKind
    operation_id: str = Field(default_factory=new_operation_id)
    start_time: datetime = Field(default_factory=_utc_now)
    end_time: datetime | None = None
    duration: timedelta | None = None
    success_count: int = 0
    failure_count: int = 0
    cancelled_count: int = 0
    cancelled: bool = False
    errors: list[BatchError] = []
    created_records: list[RecordRef] = []
    updated_records: list[RecordRef] = []
    deleted_records: list[RecordRef] = []

    @property
    def total_records(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        """Percentage of records that succeeded."""
        if self.total_records == 0:
            return 0.0
        return self.success_count / self.total_records * 100.0

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    def absorb(self, result: ChunkResult) -> None:
        """Fold one chunk's result into the running totals."""
        self._ensure_open()
        self.success_count += result.success_count
        self.failure_count += result.failure_count
        self.errors.extend(result.errors)
        self.created_records.extend(result.created)
        self.updated_records.extend(result.updated)
        self.deleted_records.extend(result.deleted)
        if result.cancelled:
            self.cancelled = True
            self.cancelled_count += result.operation_count - result.processed_count

    def mark_completed(self) -> None:
        """Freeze end time and duration."""
        self._ensure_open()
        end_time = _utc_now()
        self.duration = end_time - self.start_time
        self.end_time = end_time

    def _ensure_open(self) -> None:
        if self.is_completed:
            msg = f"Batch report {self.operation_id} is already completed"
            raise ReportFinalizedError(msg)

    def __setattr__(self, name: str, value: Any) -> None:
        # end_time is assigned last by mark_completed
        self._ensure_open()
        super().__setattr__(name, value)

    def __str__(self) -> str:
        return (
            f"BatchReport [{self.operation_kind}] - Total: {self.total_records:,}, "
            f"Success: {self.success_count:,}, Failed: {self.failure_count:,}"
        )


class BatchRetrieveReport(BatchReport):
    """Batch report for retrievals, with fetched records and misses."""

    operation_kind: OperationKind = OperationKind.RETRIEVE
    retrieved_records: list[Record] = []
    not_found_references: list[RecordRef] = []

    @property
    def not_found_count(self) -> int:
        return len(self.not_found_references)

    def absorb(self, result: ChunkResult) -> None:
        super().absorb(result)
        self.retrieved_records.extend(result.retrieved)
        self.not_found_references.extend(result.not_found)


def new_report(kind: OperationKind) -> BatchReport:
    """Start an empty report of the class matching ``kind``."""
    if kind == OperationKind.RETRIEVE:
        return BatchRetrieveReport()
    return BatchReport(operation_kind=kind)
