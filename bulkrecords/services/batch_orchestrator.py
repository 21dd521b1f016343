"""Batch orchestrator: plans chunks and runs them on a bounded worker pool."""

from __future__ import annotations

from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

import structlog

from bulkrecords.core.aggregation import cancelled_chunk_result, failed_chunk_result, fold_results
from bulkrecords.core.chunking import plan_chunks
from bulkrecords.core.request_builders import not_found_predicate, strategy_for
from bulkrecords.models.batch_report import new_report
from bulkrecords.models.config import BatchOptions, BulkClientConfig
from bulkrecords.models.errors import RecordValidationError
from bulkrecords.models.operation import OperationKind
from bulkrecords.services.chunk_executor import ChunkExecutor
from bulkrecords.utils.progress import ProgressTracker
from bulkrecords.utils.retry import RetryingInvoker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bulkrecords.core.request_builders import NotFoundPredicate
    from bulkrecords.models.batch_report import BatchReport
    from bulkrecords.models.operation import Operation
    from bulkrecords.models.outcome import ChunkResult
    from bulkrecords.services.protocols import BulkEndpointProtocol

logger = structlog.get_logger(__name__)


class BatchOrchestrator:
    """Runs a homogeneous list of operations as concurrent chunked bulk calls.

    Every chunk task returns an immutable :class:`ChunkResult`; results are
    folded into the report in chunk order once all workers have finished, so
    no counter is ever shared between threads.
    """

    def __init__(
        self,
        endpoint: BulkEndpointProtocol,
        config: BulkClientConfig | None = None,
        invoker: RetryingInvoker | None = None,
        is_not_found: NotFoundPredicate | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.config = config or BulkClientConfig()
        self.invoker = invoker or RetryingInvoker(
            max_delay_ms=self.config.max_retry_delay_ms,
            jitter_ratio=self.config.retry_jitter_ratio,
        )
        self.is_not_found = is_not_found or not_found_predicate(self.config.not_found_fault_codes)

    def resolve_batch_size(self, batch_size: int | None, options: BatchOptions) -> int:
        """Pick the chunk size for one run and check it against the service cap."""
        if batch_size is None:
            batch_size = options.batch_size
        if batch_size is None:
            batch_size = self.config.default_batch_size
        if batch_size < 1 or batch_size > self.config.max_batch_size:
            msg = f"batch_size must be between 1 and {self.config.max_batch_size}, got {batch_size}"
            raise ValueError(msg)
        return batch_size

    def validate(self, operations: list[Operation], kind: OperationKind) -> None:
        """Reject the whole input before any network call."""
        problems: list[str] = []
        mismatched = sum(1 for op in operations if op.kind != kind)
        if mismatched:
            problems.append(f"Found {mismatched} operations that are not {kind} operations.")
        problems.extend(strategy_for(kind).validate(operations))
        if problems:
            raise RecordValidationError(problems)

    def run(
        self,
        operations: Iterable[Operation] | None,
        kind: OperationKind | str,
        batch_size: int | None = None,
        options: BatchOptions | None = None,
    ) -> BatchReport:
        """Execute ``operations`` and return the finalized report.

        Only argument problems raise (``ValueError`` or
        :class:`RecordValidationError`); endpoint failures are recorded in
        the report.
        """
        if operations is None:
            msg = "operations must not be None"
            raise ValueError(msg)

        kind = OperationKind(kind)
        options = options or BatchOptions()
        ops = list(operations)
        report = new_report(kind)

        if not ops:
            report.mark_completed()
            logger.info("batch_operation_empty", operation_id=report.operation_id, operation_kind=str(kind))
            return report

        size = self.resolve_batch_size(batch_size, options)
        self.validate(ops, kind)
        chunks = plan_chunks(ops, size)

        executor = ChunkExecutor(
            self.endpoint,
            self.invoker,
            strategy_for(kind),
            is_not_found=self.is_not_found,
            timeout_ms=options.timeout_ms or self.config.batch_timeout_ms,
        )
        max_retries = options.max_retries if options.max_retries is not None else self.config.effective_retry_attempts
        retry_delay_ms = options.retry_delay_ms if options.retry_delay_ms is not None else self.config.retry_delay_ms
        cancel_event = options.cancel_event

        tracker = ProgressTracker(
            operation_kind=kind,
            operation_id=report.operation_id,
            total_records=len(ops),
            total_chunks=len(chunks),
        )
        max_workers = min(self.config.max_concurrent_chunks, len(chunks))

        logger.info(
            "batch_operation_started",
            operation_id=report.operation_id,
            operation_kind=str(kind),
            total_records=len(ops),
            total_chunks=len(chunks),
            batch_size=size,
            max_workers=max_workers,
        )

        results: list[ChunkResult] = []
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {
                pool.submit(executor.execute, chunk, max_retries, retry_delay_ms, cancel_event, report.operation_id): chunk
                for chunk in chunks
            }

            for future in as_completed(futures):
                chunk = futures[future]
                try:
                    result = future.result()
                except CancelledError:
                    result = cancelled_chunk_result(chunk)
                except Exception as exc:
                    logger.error(
                        "chunk_task_failed",
                        operation_id=report.operation_id,
                        chunk_number=chunk.number,
                        error=str(exc),
                    )
                    result = failed_chunk_result(chunk, exc)

                results.append(result)
                tracker.record_chunk(result)
                self._report_progress(tracker, options)

                if cancel_event is not None and cancel_event.is_set():
                    for pending in futures:
                        pending.cancel()

        fold_results(report, results)
        report.mark_completed()

        logger.info(
            "batch_operation_completed",
            operation_id=report.operation_id,
            operation_kind=str(kind),
            total_records=report.total_records,
            success_count=report.success_count,
            failure_count=report.failure_count,
            cancelled=report.cancelled,
            cancelled_count=report.cancelled_count,
            error_count=len(report.errors),
            duration_seconds=round(report.duration.total_seconds(), 3) if report.duration else None,
        )
        return report

    def _report_progress(self, tracker: ProgressTracker, options: BatchOptions) -> None:
        if self.config.enable_progress_reporting:
            tracker.log_progress()
        if not options.progress_enabled or options.progress is None:
            return
        try:
            options.progress(tracker.snapshot())
        except Exception as exc:
            logger.warning(
                "progress_callback_failed",
                operation_id=tracker.operation_id,
                error=str(exc),
            )
