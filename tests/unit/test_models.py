"""Unit tests for the Pydantic models, reports and configuration.

These tests call actual constructors with no mocking -- they exercise real
validation paths.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Any
from uuid import uuid4

import pytest
from pydantic import ValidationError

from bulkrecords.models.batch_report import BatchReport, BatchRetrieveReport, new_operation_id, new_report
from bulkrecords.models.bulk import BulkItemResponse, Chunk, Fault
from bulkrecords.models.config import BatchOptions, BulkClientConfig
from bulkrecords.models.errors import (
    BatchOperationError,
    BulkRecordError,
    OperationCancelledError,
    RecordValidationError,
    ReportFinalizedError,
    RetryExhaustedError,
)
from bulkrecords.models.operation import ColumnSelector, Operation, OperationKind, Record, RecordRef
from bulkrecords.models.outcome import BatchError, ChunkResult, ErrorSeverity
from bulkrecords.models.progress import ProgressSnapshot

ENTITY = "account"


def _ref() -> RecordRef:
    return RecordRef(entity_name=ENTITY, id=uuid4())


def _config(**overrides: object) -> BulkClientConfig:
    return BulkClientConfig(_env_file=None, **overrides)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class TestRecordRef:
    def test_valid(self) -> None:
        ref = _ref()
        assert ref.entity_name == ENTITY
        assert str(ref) == f"{ENTITY}({ref.id})"

    def test_empty_entity_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RecordRef(entity_name="  ", id=uuid4())

    def test_frozen(self) -> None:
        ref = _ref()
        with pytest.raises(ValidationError):
            ref.entity_name = "other"  # type: ignore[misc]


class TestRecord:
    def test_ref(self) -> None:
        record = Record(entity_name=ENTITY, id=uuid4(), attributes={"a": 1})
        assert record.ref() == RecordRef(entity_name=ENTITY, id=record.id)

    def test_ref_without_id(self) -> None:
        with pytest.raises(ValueError, match="has no id"):
            Record(entity_name=ENTITY).ref()

    def test_blank_entity_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="entity_name must not be empty"):
            Record(entity_name="  ", id=uuid4())


class TestOperation:
    def test_create(self) -> None:
        op = Operation.create(Record(entity_name=ENTITY, attributes={"name": "x"}))
        assert op.kind == OperationKind.CREATE
        assert op.target is None
        assert op.payload == {"name": "x"}

    def test_update_without_id_is_allowed_until_validation(self) -> None:
        op = Operation.update(Record(entity_name=ENTITY))
        assert op.record_id is None

    def test_delete_requires_id(self) -> None:
        with pytest.raises(ValidationError, match="requires a record_id"):
            Operation(kind=OperationKind.DELETE, entity_name=ENTITY)

    def test_retrieve_requires_id(self) -> None:
        with pytest.raises(ValidationError):
            Operation(kind=OperationKind.RETRIEVE, entity_name=ENTITY)

    def test_blank_entity_name_rejected(self) -> None:
        with pytest.raises(ValidationError, match="entity_name must not be empty"):
            Operation(kind=OperationKind.UPDATE, entity_name="", record_id=uuid4())

    def test_retrieve_default_columns(self) -> None:
        op = Operation.retrieve(_ref())
        assert op.columns is not None
        assert op.columns.all_columns is True

    def test_as_record_copies_payload(self) -> None:
        record = Record(entity_name=ENTITY, id=uuid4(), attributes={"name": "x"})
        rebuilt = Operation.update(record).as_record()
        assert rebuilt == record

    def test_frozen(self) -> None:
        op = Operation.delete(_ref())
        with pytest.raises(ValidationError):
            op.entity_name = "other"  # type: ignore[misc]

    def test_column_selector_of(self) -> None:
        selector = ColumnSelector.of("a", "b")
        assert selector.all_columns is False
        assert selector.columns == ("a", "b")


class TestBulkModels:
    def test_chunk_size(self) -> None:
        chunk = Chunk(number=1, operations=(Operation.delete(_ref()), Operation.delete(_ref())))
        assert chunk.size == 2

    def test_item_succeeded(self) -> None:
        assert BulkItemResponse(request_index=0).succeeded is True
        assert BulkItemResponse(request_index=0, fault=Fault(code=1)).succeeded is False


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_str_with_code(self) -> None:
        assert str(BulkRecordError("boom", error_code="X1")) == "[X1] boom"

    def test_str_without_code(self) -> None:
        assert str(BulkRecordError("boom")) == "boom"

    def test_validation_error_is_value_error(self) -> None:
        error = RecordValidationError(["a", "b"])
        assert isinstance(error, ValueError)
        assert error.validation_errors == ["a", "b"]
        assert "Validation failed with 2 error(s): a; b" in str(error)

    def test_retry_exhausted(self) -> None:
        cause = TimeoutError("slow")
        error = RetryExhaustedError(4, cause)
        assert error.attempts == 4
        assert error.last_error is cause
        assert "failed after 4 attempts: slow" in str(error)

    def test_cancelled(self) -> None:
        assert OperationCancelledError().error_code == "CANCELLED"

    def test_batch_operation_error(self) -> None:
        error = BatchOperationError("could not run", operation_kind="create")
        assert error.operation_kind == "create"
        assert error.error_code == "BATCH_FAILED"


# ---------------------------------------------------------------------------
# Outcomes and reports
# ---------------------------------------------------------------------------


class TestBatchError:
    def test_summary(self) -> None:
        error = BatchError(chunk_number=1, error_code="E1", error_message="bad", severity=ErrorSeverity.CRITICAL)
        assert error.summary == "[critical] E1: bad"
        assert str(error) == error.summary


class TestBatchReport:
    def test_operation_id_format(self) -> None:
        operation_id = new_operation_id()
        assert operation_id.startswith("BATCH-")
        assert len(operation_id.split("-")) == 4
        assert len(operation_id.split("-")[-1]) == 8

    def test_new_report_for_retrieve(self) -> None:
        assert isinstance(new_report(OperationKind.RETRIEVE), BatchRetrieveReport)
        assert isinstance(new_report("retrieve"), BatchRetrieveReport)
        assert type(new_report(OperationKind.CREATE)) is BatchReport

    def test_empty_report(self) -> None:
        report = new_report(OperationKind.CREATE)
        assert report.total_records == 0
        assert report.success_rate == 0.0
        assert report.has_errors is False
        assert report.is_completed is False

    def test_absorb(self) -> None:
        report = new_report(OperationKind.DELETE)
        refs = (_ref(), _ref())
        error = BatchError(chunk_number=1, request_index=2, error_message="nope")
        report.absorb(
            ChunkResult(
                chunk_number=1,
                operation_count=3,
                success_count=2,
                failure_count=1,
                errors=(error,),
                deleted=refs,
            )
        )
        assert report.success_count == 2
        assert report.failure_count == 1
        assert report.deleted_records == list(refs)
        assert report.success_rate == pytest.approx(200 / 3)
        assert report.has_errors is True

    def test_mark_completed_sets_duration(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.mark_completed()
        assert report.is_completed is True
        assert report.duration is not None
        assert report.duration >= timedelta(0)

    def test_finalize_twice_raises(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.mark_completed()
        with pytest.raises(ReportFinalizedError):
            report.mark_completed()

    def test_absorb_after_completion_raises(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.mark_completed()
        with pytest.raises(ReportFinalizedError):
            report.absorb(ChunkResult(chunk_number=1, operation_count=1, success_count=1))

    def test_assignment_after_completion_raises(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.success_count = 3
        report.mark_completed()
        with pytest.raises(ReportFinalizedError):
            report.success_count = 10
        assert report.success_count == 3

    def test_assignment_is_validated(self) -> None:
        report = new_report(OperationKind.CREATE)
        with pytest.raises(ValidationError):
            report.failure_count = "many"  # type: ignore[assignment]

    def test_retrieve_report_not_found(self) -> None:
        report = new_report(OperationKind.RETRIEVE)
        assert isinstance(report, BatchRetrieveReport)
        missing = (_ref(),)
        fetched = (Record(entity_name=ENTITY, id=uuid4()),)
        report.absorb(
            ChunkResult(chunk_number=1, operation_count=2, success_count=1, retrieved=fetched, not_found=missing)
        )
        assert report.not_found_count == 1
        assert report.retrieved_records == list(fetched)
        assert report.total_records + report.not_found_count == 2

    def test_partial_cancellation(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.absorb(ChunkResult(chunk_number=1, operation_count=2, success_count=2))
        report.absorb(ChunkResult(chunk_number=2, operation_count=2, cancelled=True))
        assert report.cancelled is True
        assert report.success_count + report.failure_count + report.cancelled_count == 4

    def test_str(self) -> None:
        report = new_report(OperationKind.CREATE)
        report.absorb(ChunkResult(chunk_number=1, operation_count=1200, success_count=1200))
        assert str(report) == "BatchReport [create] - Total: 1,200, Success: 1,200, Failed: 0"


# ---------------------------------------------------------------------------
# Progress snapshots
# ---------------------------------------------------------------------------


class TestProgressSnapshot:
    def _snapshot(self, **overrides: object) -> ProgressSnapshot:
        values: dict[str, object] = {
            "operation_kind": OperationKind.CREATE,
            "operation_id": "BATCH-1",
            "processed_records": 50,
            "total_records": 200,
            "current_chunk": 1,
            "total_chunks": 4,
            "success_count": 40,
            "failure_count": 10,
        }
        values.update(overrides)
        return ProgressSnapshot(**values)  # type: ignore[arg-type]

    def test_percentages(self) -> None:
        snapshot = self._snapshot()
        assert snapshot.percent_complete == pytest.approx(25.0)
        assert snapshot.chunk_percent_complete == pytest.approx(25.0)
        assert snapshot.success_rate == pytest.approx(80.0)

    def test_zero_totals(self) -> None:
        snapshot = self._snapshot(processed_records=0, total_records=0, current_chunk=0, total_chunks=0)
        assert snapshot.percent_complete == 0.0
        assert snapshot.chunk_percent_complete == 0.0
        assert snapshot.success_rate == 0.0

    def test_formatted_progress(self) -> None:
        snapshot = self._snapshot(processed_records=1500, total_records=3000)
        assert snapshot.formatted_progress == "1,500/3,000 (50.0%)"

    def test_str_unknown_eta(self) -> None:
        assert "ETA: Unknown" in str(self._snapshot())

    def test_frozen(self) -> None:
        snapshot = self._snapshot()
        with pytest.raises(ValidationError):
            snapshot.current_chunk = 3  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestBulkClientConfig:
    def test_defaults(self) -> None:
        config = _config()
        assert config.default_batch_size == 100
        assert config.max_batch_size == 1000
        assert config.retry_attempts == 3
        assert config.retry_delay_ms == 1000
        assert config.batch_timeout_ms == 300000
        assert config.enable_retry_on_failure is True
        assert config.enable_progress_reporting is False
        assert config.retry_jitter_ratio == 0.0

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BULK_DEFAULT_BATCH_SIZE", "250")
        monkeypatch.setenv("BULK_RETRY_ATTEMPTS", "5")
        config = _config()
        assert config.default_batch_size == 250
        assert config.retry_attempts == 5

    @pytest.mark.parametrize("value", [0, 1001])
    def test_max_batch_size_bounds(self, value: int) -> None:
        with pytest.raises(ValidationError, match="max_batch_size"):
            _config(max_batch_size=value)

    @pytest.mark.parametrize("value", [-1, 11])
    def test_retry_attempts_bounds(self, value: int) -> None:
        with pytest.raises(ValidationError, match="retry_attempts"):
            _config(retry_attempts=value)

    def test_default_batch_size_above_max(self) -> None:
        with pytest.raises(ValidationError, match="default_batch_size"):
            _config(default_batch_size=600, max_batch_size=500)

    def test_negative_delay(self) -> None:
        with pytest.raises(ValidationError):
            _config(retry_delay_ms=-5)

    def test_jitter_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _config(retry_jitter_ratio=1.5)

    def test_timeout_positive(self) -> None:
        with pytest.raises(ValidationError):
            _config(batch_timeout_ms=0)

    def test_concurrency_bounds(self) -> None:
        with pytest.raises(ValidationError):
            _config(max_concurrent_chunks=0)

    def test_log_level_normalized(self) -> None:
        assert _config(log_level="debug").log_level == "DEBUG"

    def test_log_level_invalid(self) -> None:
        with pytest.raises(ValidationError):
            _config(log_level="LOUD")

    def test_retry_disabled_means_zero_retries(self) -> None:
        assert _config(enable_retry_on_failure=False).effective_retry_attempts == 0
        assert _config(retry_attempts=2).effective_retry_attempts == 2


class TestBatchOptions:
    def test_progress_disabled_without_sink(self) -> None:
        assert BatchOptions().progress_enabled is False

    def test_progress_enabled_with_sink(self) -> None:
        assert BatchOptions(progress=lambda snapshot: None).progress_enabled is True

    def test_progress_explicitly_disabled(self) -> None:
        options = BatchOptions(progress=lambda snapshot: None, enable_progress_reporting=False)
        assert options.progress_enabled is False

    def test_cancel_event_carried(self) -> None:
        event = threading.Event()
        assert BatchOptions(cancel_event=event).cancel_event is event

    @pytest.mark.parametrize(
        ("overrides", "match"),
        [
            ({"max_retries": -1}, "max_retries"),
            ({"max_retries": 11}, "max_retries"),
            ({"retry_delay_ms": -5}, "retry_delay_ms"),
            ({"timeout_ms": 0}, "timeout_ms"),
        ],
    )
    def test_invalid_overrides_rejected(self, overrides: dict[str, Any], match: str) -> None:
        with pytest.raises(ValueError, match=match):
            BatchOptions(**overrides)

    def test_zero_retries_allowed(self) -> None:
        assert BatchOptions(max_retries=0, retry_delay_ms=0).max_retries == 0
