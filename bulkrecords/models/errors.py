"""Exception hierarchy for bulk record operations."""

from __future__ import annotations

from typing import Any

# Error codes shared with the remote service where it defines them.
RECORD_NOT_FOUND_CODE = -2147220969
RECORD_NOT_FOUND = "0x80040217"
INVALID_ARGUMENT = "0x80040203"
TIMEOUT = "0x80040204"
DUPLICATE_RECORD = "0x80040237"
BATCH_OPERATION_FAILED = "BATCH_FAILED"
VALIDATION_FAILED = "VALIDATION_FAILED"
MISSING_RESPONSE = "MISSING_RESPONSE"
CANCELLED = "CANCELLED"


class BulkRecordError(Exception):
    """Base class for every error raised by the bulk engine."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class RecordValidationError(BulkRecordError, ValueError):
    """Input rejected before any network call was made."""

    def __init__(self, validation_errors: list[str] | str) -> None:
        if isinstance(validation_errors, str):
            validation_errors = [validation_errors]
        self.validation_errors = list(validation_errors)
        message = (
            f"Validation failed with {len(self.validation_errors)} error(s): "
            f"{'; '.join(self.validation_errors)}"
        )
        super().__init__(message, error_code=VALIDATION_FAILED)


class RetryExhaustedError(BulkRecordError):
    """A transient failure persisted through every allowed attempt."""

    def __init__(self, attempts: int, last_error: BaseException | None = None) -> None:
        self.attempts = attempts
        self.last_error = last_error
        message = f"Operation failed after {attempts} attempts"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(message, error_code=TIMEOUT, details={"attempts": attempts})


class OperationCancelledError(BulkRecordError):
    """The caller's cancel signal was observed."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message, error_code=CANCELLED)


class BatchOperationError(BulkRecordError):
    """A batch operation could not be orchestrated at all."""

    def __init__(self, message: str, operation_kind: str | None = None) -> None:
        self.operation_kind = operation_kind
        super().__init__(
            message,
            error_code=BATCH_OPERATION_FAILED,
            details={"operation_kind": operation_kind} if operation_kind else None,
        )


class ReportFinalizedError(BulkRecordError):
    """A batch report was modified after it had been completed."""
