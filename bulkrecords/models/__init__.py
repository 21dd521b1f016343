"""Pydantic data models for the bulk record engine."""

from bulkrecords.models.batch_report import BatchReport, BatchRetrieveReport, new_report
from bulkrecords.models.bulk import BulkItemResponse, BulkRequest, Chunk, Fault, SubRequest
from bulkrecords.models.config import BatchOptions, BulkClientConfig
from bulkrecords.models.errors import (
    BatchOperationError,
    BulkRecordError,
    OperationCancelledError,
    RecordValidationError,
    ReportFinalizedError,
    RetryExhaustedError,
)
from bulkrecords.models.operation import (
    ColumnSelector,
    Operation,
    OperationKind,
    Record,
    RecordRef,
)
from bulkrecords.models.outcome import (
    BatchError,
    ChunkResult,
    ErrorSeverity,
    OutcomeStatus,
    RecordOutcome,
)
from bulkrecords.models.progress import ProgressSnapshot

__all__ = [
    "BatchError",
    "BatchOperationError",
    "BatchOptions",
    "BatchReport",
    "BatchRetrieveReport",
    "BulkClientConfig",
    "BulkItemResponse",
    "BulkRecordError",
    "BulkRequest",
    "Chunk",
    "ChunkResult",
    "ColumnSelector",
    "ErrorSeverity",
    "Fault",
    "Operation",
    "OperationCancelledError",
    "OperationKind",
    "OutcomeStatus",
    "ProgressSnapshot",
    "Record",
    "RecordOutcome",
    "RecordRef",
    "RecordValidationError",
    "ReportFinalizedError",
    "RetryExhaustedError",
    "SubRequest",
    "new_report",
]
