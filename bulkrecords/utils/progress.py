"""Progress tracking for chunked batch operations."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import timedelta

from bulkrecords.models.operation import OperationKind
from bulkrecords.models.outcome import ChunkResult
from bulkrecords.models.progress import ProgressSnapshot
from bulkrecords.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ProgressTracker:
    """Running totals of a batch operation as its chunks complete.

    Only the orchestrating thread records into a tracker.
    """

    operation_kind: OperationKind
    operation_id: str
    total_records: int
    total_chunks: int
    processed: int = 0
    successful: int = 0
    failed: int = 0
    not_found: int = 0
    cancelled: int = 0
    chunks_completed: int = 0
    last_chunk_number: int | None = None
    start_time: float = field(default_factory=time.monotonic)

    def record_chunk(self, result: ChunkResult) -> None:
        """Record a completed (or cancelled) chunk."""
        self.chunks_completed += 1
        self.last_chunk_number = result.chunk_number
        self.successful += result.success_count
        self.failed += result.failure_count
        self.not_found += len(result.not_found)
        self.processed += result.processed_count
        if result.cancelled:
            self.cancelled += result.operation_count - result.processed_count

    @property
    def elapsed_seconds(self) -> float:
        """Time elapsed since start."""
        return time.monotonic() - self.start_time

    @property
    def progress_percentage(self) -> float:
        """Percentage of total records processed."""
        if self.total_records == 0:
            return 100.0
        return (self.processed / self.total_records) * 100.0

    def snapshot(self) -> ProgressSnapshot:
        """Build a snapshot of the current totals with throughput and ETA."""
        elapsed = self.elapsed_seconds
        rate = self.processed / elapsed if elapsed > 0 else 0.0
        remaining = self.total_records - self.processed - self.cancelled
        eta: timedelta | None = None
        if rate > 0 and remaining > 0:
            eta = timedelta(seconds=remaining / rate)
        elif remaining <= 0:
            eta = timedelta(0)

        return ProgressSnapshot(
            operation_kind=self.operation_kind,
            operation_id=self.operation_id,
            processed_records=self.processed,
            total_records=self.total_records,
            current_chunk=self.chunks_completed,
            total_chunks=self.total_chunks,
            last_chunk_number=self.last_chunk_number,
            success_count=self.successful,
            failure_count=self.failed,
            elapsed=timedelta(seconds=elapsed),
            current_rate=rate,
            estimated_time_remaining=eta,
        )

    def log_progress(self) -> None:
        """Log the current totals."""
        logger.debug(
            "batch_progress",
            operation_id=self.operation_id,
            chunks_completed=self.chunks_completed,
            total_chunks=self.total_chunks,
            processed=self.processed,
            total=self.total_records,
            successful=self.successful,
            failed=self.failed,
            not_found=self.not_found,
            percentage=f"{self.progress_percentage:.1f}%",
            elapsed=f"{self.elapsed_seconds:.1f}s",
        )

    def summary(self) -> dict[str, int | float]:
        """Return summary statistics."""
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "not_found": self.not_found,
            "cancelled": self.cancelled,
            "chunks_completed": self.chunks_completed,
            "duration_seconds": round(self.elapsed_seconds, 2),
        }
