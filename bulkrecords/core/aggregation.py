"""Folding record outcomes into chunk results, and chunk results into reports."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bulkrecords.models.errors import BATCH_OPERATION_FAILED, MISSING_RESPONSE
from bulkrecords.models.operation import OperationKind
from bulkrecords.models.outcome import (
    BatchError,
    ChunkResult,
    ErrorSeverity,
    OutcomeStatus,
    RecordOutcome,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from bulkrecords.models.batch_report import BatchReport
    from bulkrecords.models.bulk import Chunk
    from bulkrecords.models.operation import Operation, Record, RecordRef


def missing_response_outcome(operation: Operation, chunk_number: int, request_index: int) -> RecordOutcome:
    """Outcome for an operation the endpoint returned no response item for."""
    return RecordOutcome(
        status=OutcomeStatus.FAILURE,
        target=operation.target,
        error=BatchError(
            chunk_number=chunk_number,
            request_index=request_index,
            error_code=MISSING_RESPONSE,
            error_message="No response was returned for this request",
            severity=ErrorSeverity.ERROR,
            target=operation.target,
        ),
    )


def summarize_chunk(chunk: Chunk, kind: OperationKind, outcomes: Sequence[RecordOutcome]) -> ChunkResult:
    """Count the outcomes of one chunk, positionally aligned with its operations."""
    success_count = 0
    failure_count = 0
    errors: list[BatchError] = []
    touched: list[RecordRef] = []
    retrieved: list[Record] = []
    not_found: list[RecordRef] = []

    for outcome in outcomes:
        if outcome.status is OutcomeStatus.SUCCESS:
            success_count += 1
            if kind == OperationKind.CREATE and outcome.created is not None:
                touched.append(outcome.created)
            elif kind in (OperationKind.UPDATE, OperationKind.DELETE) and outcome.target is not None:
                touched.append(outcome.target)
            elif kind == OperationKind.RETRIEVE and outcome.record is not None:
                retrieved.append(outcome.record)
        elif outcome.status is OutcomeStatus.NOT_FOUND:
            if outcome.target is not None:
                not_found.append(outcome.target)
        else:
            failure_count += 1
            if outcome.error is not None:
                errors.append(outcome.error)

    return ChunkResult(
        chunk_number=chunk.number,
        operation_count=chunk.size,
        success_count=success_count,
        failure_count=failure_count,
        errors=tuple(errors),
        created=tuple(touched) if kind == OperationKind.CREATE else (),
        updated=tuple(touched) if kind == OperationKind.UPDATE else (),
        deleted=tuple(touched) if kind == OperationKind.DELETE else (),
        retrieved=tuple(retrieved),
        not_found=tuple(not_found),
    )


def failed_chunk_result(chunk: Chunk, exc: BaseException) -> ChunkResult:
    """The whole chunk failed: one critical error and every operation counted as failed."""
    error = BatchError(
        chunk_number=chunk.number,
        error_code=str(getattr(exc, "error_code", None) or BATCH_OPERATION_FAILED),
        error_message=f"Batch execution failed: {exc}",
        severity=ErrorSeverity.CRITICAL,
        exception_type=type(exc).__name__,
    )
    return ChunkResult(
        chunk_number=chunk.number,
        operation_count=chunk.size,
        failure_count=chunk.size,
        errors=(error,),
    )


def cancelled_chunk_result(chunk: Chunk) -> ChunkResult:
    """A chunk that never reached the endpoint because the call was cancelled."""
    return ChunkResult(chunk_number=chunk.number, operation_count=chunk.size, cancelled=True)


def fold_results(report: BatchReport, results: Iterable[ChunkResult]) -> BatchReport:
    """Absorb chunk results into ``report`` in chunk order."""
    for result in sorted(results, key=lambda r: r.chunk_number):
        report.absorb(result)
    return report
