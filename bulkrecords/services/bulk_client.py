"""Caller-facing client with one entry point per bulk operation kind."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

import structlog

from bulkrecords.models.config import BulkClientConfig
from bulkrecords.models.errors import BatchOperationError, BulkRecordError
from bulkrecords.models.operation import Operation, OperationKind
from bulkrecords.services.batch_orchestrator import BatchOrchestrator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bulkrecords.models.batch_report import BatchReport, BatchRetrieveReport
    from bulkrecords.models.config import BatchOptions
    from bulkrecords.models.operation import ColumnSelector, Record, RecordRef
    from bulkrecords.services.protocols import BulkEndpointProtocol

logger = structlog.get_logger(__name__)


class BulkRecordClient:
    """Creates, updates, deletes and retrieves records in bulk.

    Each call returns a finalized report. Argument errors (``ValueError``,
    :class:`RecordValidationError`) surface unchanged; any other failure to
    orchestrate the batch is wrapped in :class:`BatchOperationError`.
    """

    def __init__(
        self,
        endpoint: BulkEndpointProtocol,
        config: BulkClientConfig | None = None,
        orchestrator: BatchOrchestrator | None = None,
    ) -> None:
        self.config = config or BulkClientConfig()
        self.orchestrator = orchestrator or BatchOrchestrator(endpoint, self.config)

    def create_many(
        self,
        records: Iterable[Record] | None,
        batch_size: int | None = None,
        options: BatchOptions | None = None,
    ) -> BatchReport:
        operations = None if records is None else [Operation.create(r) for r in records]
        return self._run(operations, OperationKind.CREATE, batch_size, options)

    def update_many(
        self,
        records: Iterable[Record] | None,
        batch_size: int | None = None,
        options: BatchOptions | None = None,
    ) -> BatchReport:
        operations = None if records is None else [Operation.update(r) for r in records]
        return self._run(operations, OperationKind.UPDATE, batch_size, options)

    def delete_many(
        self,
        refs: Iterable[RecordRef] | None,
        batch_size: int | None = None,
        options: BatchOptions | None = None,
    ) -> BatchReport:
        operations = None if refs is None else [Operation.delete(ref) for ref in refs]
        return self._run(operations, OperationKind.DELETE, batch_size, options)

    def retrieve_many(
        self,
        refs: Iterable[RecordRef] | None,
        batch_size: int | None = None,
        options: BatchOptions | None = None,
        *,
        columns: ColumnSelector | None = None,
    ) -> BatchRetrieveReport:
        """Fetch records by reference; misses are reported as not found, not as failures."""
        operations = None if refs is None else [Operation.retrieve(ref, columns) for ref in refs]
        report = self._run(operations, OperationKind.RETRIEVE, batch_size, options)
        return cast("BatchRetrieveReport", report)

    def _run(
        self,
        operations: list[Operation] | None,
        kind: OperationKind,
        batch_size: int | None,
        options: BatchOptions | None,
    ) -> BatchReport:
        if operations is None:
            msg = f"{kind} input must not be None"
            raise ValueError(msg)
        try:
            return self.orchestrator.run(operations, kind, batch_size=batch_size, options=options)
        except (ValueError, BulkRecordError):
            raise
        except Exception as exc:
            logger.exception("batch_operation_failed", operation_kind=str(kind), error=str(exc))
            msg = f"Bulk {kind} operation failed: {exc}"
            raise BatchOperationError(msg, operation_kind=str(kind)) from exc
