"""Point-in-time view of an in-flight batch operation."""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict

from bulkrecords.models.operation import OperationKind


class ProgressSnapshot(BaseModel):
    """Running totals of a batch operation after some chunks completed.

    Snapshots are informational only. Consumers must tolerate skipped or
    out-of-order snapshots; the final report is authoritative.
    """

    model_config = ConfigDict(frozen=True)

    operation_kind: OperationKind
    operation_id: str
    processed_records: int
    total_records: int
    current_chunk: int
    total_chunks: int
    last_chunk_number: int | None = None
    success_count: int = 0
    failure_count: int = 0
    elapsed: timedelta = timedelta(0)
    current_rate: float = 0.0
    estimated_time_remaining: timedelta | None = None

    @property
    def percent_complete(self) -> float:
        if self.total_records <= 0:
            return 0.0
        return self.processed_records / self.total_records * 100.0

    @property
    def chunk_percent_complete(self) -> float:
        if self.total_chunks <= 0:
            return 0.0
        return self.current_chunk / self.total_chunks * 100.0

    @property
    def success_rate(self) -> float:
        if self.processed_records <= 0:
            return 0.0
        return self.success_count / self.processed_records * 100.0

    @property
    def formatted_progress(self) -> str:
        return (
            f"{self.processed_records:,}/{self.total_records:,} "
            f"({self.percent_complete:.1f}%)"
        )

    def __str__(self) -> str:
        eta = str(self.estimated_time_remaining) if self.estimated_time_remaining else "Unknown"
        return (
            f"Progress [{self.formatted_progress}] Chunk {self.current_chunk}/{self.total_chunks} - "
            f"Success: {self.success_count:,}, Failed: {self.failure_count:,}, "
            f"Rate: {self.current_rate:.1f}/sec, ETA: {eta}"
        )
