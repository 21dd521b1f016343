"""Bulk request envelope and per-item responses exchanged with the endpoint."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from bulkrecords.models.operation import (
    ColumnSelector,
    Operation,
    OperationKind,
    Record,
    RecordRef,
)


class Chunk(BaseModel):
    """Ordered, non-empty slice of operations sent as one bulk call."""

    model_config = ConfigDict(frozen=True)

    number: int
    operations: tuple[Operation, ...]

    @property
    def size(self) -> int:
        return len(self.operations)


class SubRequest(BaseModel):
    """One request inside a bulk envelope."""

    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    target: RecordRef | None = None
    record: Record | None = None
    columns: ColumnSelector | None = None


class BulkRequest(BaseModel):
    """Envelope submitted to the bulk endpoint in a single call."""

    requests: list[SubRequest]
    continue_on_error: bool = True
    return_responses: bool = True


class Fault(BaseModel):
    """Error returned inline for one sub-request."""

    code: int | str
    message: str = ""


class BulkItemResponse(BaseModel):
    """Response for the sub-request at ``request_index``."""

    request_index: int
    fault: Fault | None = None
    record_id: UUID | None = None
    record: Record | None = None

    @property
    def succeeded(self) -> bool:
        return self.fault is None
