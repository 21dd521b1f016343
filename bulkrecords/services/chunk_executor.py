"""Executes one chunk of operations as a single bulk call."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from bulkrecords.core.aggregation import (
    cancelled_chunk_result,
    failed_chunk_result,
    missing_response_outcome,
    summarize_chunk,
)
from bulkrecords.core.request_builders import decode_item, not_found_predicate
from bulkrecords.models.bulk import BulkRequest
from bulkrecords.models.errors import RECORD_NOT_FOUND, RECORD_NOT_FOUND_CODE, OperationCancelledError

if TYPE_CHECKING:
    import threading

    from bulkrecords.core.request_builders import KindStrategy, NotFoundPredicate
    from bulkrecords.models.bulk import BulkItemResponse, Chunk
    from bulkrecords.models.outcome import ChunkResult, RecordOutcome
    from bulkrecords.services.protocols import BulkEndpointProtocol
    from bulkrecords.utils.retry import RetryingInvoker

logger = structlog.get_logger(__name__)


class ChunkExecutor:
    """Submits a chunk through the retrying invoker and decodes its responses.

    The executor is the same for every operation kind; ``strategy`` decides
    how sub-requests are built and how successful items are read back.
    Whatever happens, :meth:`execute` returns a :class:`ChunkResult`;
    request-building and endpoint failures both become chunk failures.
    """

    def __init__(
        self,
        endpoint: BulkEndpointProtocol,
        invoker: RetryingInvoker,
        strategy: KindStrategy,
        is_not_found: NotFoundPredicate | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.invoker = invoker
        self.strategy = strategy
        self.is_not_found = is_not_found or not_found_predicate([RECORD_NOT_FOUND_CODE, RECORD_NOT_FOUND])
        self.timeout_ms = timeout_ms

    def build_request(self, chunk: Chunk) -> BulkRequest:
        return BulkRequest(
            requests=[self.strategy.build_request(op) for op in chunk.operations],
            continue_on_error=True,
            return_responses=True,
        )

    def execute(
        self,
        chunk: Chunk,
        max_retries: int,
        retry_delay_ms: int,
        cancel_event: threading.Event | None = None,
        operation_id: str | None = None,
    ) -> ChunkResult:
        """Run ``chunk`` against the endpoint and classify every operation."""
        if cancel_event is not None and cancel_event.is_set():
            return cancelled_chunk_result(chunk)

        timeout = self.timeout_ms / 1000.0 if self.timeout_ms else None

        logger.debug(
            "chunk_started",
            operation_id=operation_id,
            operation_kind=str(self.strategy.kind),
            chunk_number=chunk.number,
            size=chunk.size,
        )

        try:
            request = self.build_request(chunk)
            responses = self.invoker.execute(
                lambda: self.endpoint.execute_multiple(request, timeout=timeout),
                max_retries=max_retries,
                base_delay_ms=retry_delay_ms,
                cancel_event=cancel_event,
            )
        except OperationCancelledError:
            logger.info("chunk_cancelled", operation_id=operation_id, chunk_number=chunk.number)
            return cancelled_chunk_result(chunk)
        except Exception as exc:
            logger.error(
                "chunk_failed",
                operation_id=operation_id,
                operation_kind=str(self.strategy.kind),
                chunk_number=chunk.number,
                size=chunk.size,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return failed_chunk_result(chunk, exc)

        result = summarize_chunk(chunk, self.strategy.kind, self.decode_responses(chunk, responses, operation_id))
        logger.debug(
            "chunk_completed",
            operation_id=operation_id,
            chunk_number=chunk.number,
            success_count=result.success_count,
            failure_count=result.failure_count,
            not_found_count=len(result.not_found),
        )
        return result

    def decode_responses(
        self,
        chunk: Chunk,
        responses: list[BulkItemResponse],
        operation_id: str | None = None,
    ) -> list[RecordOutcome]:
        """Pair response item ``i`` with operation ``i`` of the chunk."""
        if len(responses) > chunk.size:
            logger.warning(
                "surplus_bulk_responses_ignored",
                operation_id=operation_id,
                chunk_number=chunk.number,
                expected=chunk.size,
                received=len(responses),
            )
        elif len(responses) < chunk.size:
            logger.warning(
                "bulk_responses_missing",
                operation_id=operation_id,
                chunk_number=chunk.number,
                expected=chunk.size,
                received=len(responses),
            )

        outcomes: list[RecordOutcome] = []
        for index, operation in enumerate(chunk.operations):
            if index >= len(responses):
                outcomes.append(missing_response_outcome(operation, chunk.number, index))
                continue
            outcomes.append(
                decode_item(
                    self.strategy,
                    operation,
                    responses[index],
                    chunk_number=chunk.number,
                    request_index=index,
                    is_not_found=self.is_not_found,
                )
            )
        return outcomes
