"""Client-side bulk batch execution engine for remote record services."""

from __future__ import annotations

from bulkrecords.models import (
    BatchError,
    BatchOperationError,
    BatchOptions,
    BatchReport,
    BatchRetrieveReport,
    BulkClientConfig,
    BulkRecordError,
    ColumnSelector,
    Operation,
    OperationCancelledError,
    OperationKind,
    ProgressSnapshot,
    Record,
    RecordRef,
    RecordValidationError,
    RetryExhaustedError,
)
from bulkrecords.services.batch_orchestrator import BatchOrchestrator
from bulkrecords.services.bulk_client import BulkRecordClient
from bulkrecords.services.memory_endpoint import InMemoryBulkEndpoint
from bulkrecords.utils.logger import configure_logging, configure_logging_from_config
from bulkrecords.utils.retry import RetryingInvoker

__version__ = "0.1.0"

__all__ = [
    "BatchError",
    "BatchOperationError",
    "BatchOptions",
    "BatchOrchestrator",
    "BatchReport",
    "BatchRetrieveReport",
    "BulkClientConfig",
    "BulkRecordClient",
    "BulkRecordError",
    "ColumnSelector",
    "InMemoryBulkEndpoint",
    "Operation",
    "OperationCancelledError",
    "OperationKind",
    "ProgressSnapshot",
    "Record",
    "RecordRef",
    "RecordValidationError",
    "RetryExhaustedError",
    "RetryingInvoker",
    "configure_logging",
    "configure_logging_from_config",
]
