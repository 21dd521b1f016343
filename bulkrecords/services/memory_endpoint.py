"""Thread-safe in-memory bulk endpoint for tests and local experiments."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import structlog

from bulkrecords.models.bulk import BulkItemResponse, Fault
from bulkrecords.models.errors import DUPLICATE_RECORD, INVALID_ARGUMENT, RECORD_NOT_FOUND_CODE
from bulkrecords.models.operation import OperationKind, Record, RecordRef

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bulkrecords.models.bulk import BulkRequest, SubRequest

logger = structlog.get_logger(__name__)


class _ItemFault(Exception):
    def __init__(self, code: int | str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class InMemoryBulkEndpoint:
    """Dict-backed implementation of the bulk endpoint protocol.

    Sub-requests are applied in order and a fault in one of them does not
    stop the rest when ``continue_on_error`` is set. Missing records yield
    the service's not-found fault code.

    ``before_call`` runs with every request before it is applied and may
    raise to fail the whole call; ``fail_next`` queues errors raised by the
    next calls in order. ``latency_seconds`` delays each call, and a call
    whose latency exceeds its timeout raises ``TimeoutError``.
    """

    def __init__(
        self,
        records: Iterable[Record] | None = None,
        before_call: Callable[[BulkRequest], None] | None = None,
        latency_seconds: float = 0.0,
    ) -> None:
        self._lock = threading.Lock()
        self._store: dict[tuple[str, UUID], dict[str, Any]] = {}
        self._queued_errors: deque[BaseException] = deque()
        self.requests: list[BulkRequest] = []
        self.before_call = before_call
        self.latency_seconds = latency_seconds
        if records:
            self.seed(records)

    def seed(self, records: Iterable[Record]) -> list[RecordRef]:
        """Store ``records`` directly, assigning ids where missing."""
        refs: list[RecordRef] = []
        with self._lock:
            for record in records:
                record_id = record.id or uuid4()
                self._store[(record.entity_name, record_id)] = dict(record.attributes)
                refs.append(RecordRef(entity_name=record.entity_name, id=record_id))
        return refs

    def fail_next(self, *errors: BaseException) -> None:
        with self._lock:
            self._queued_errors.extend(errors)

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.requests)

    def get(self, ref: RecordRef) -> Record | None:
        with self._lock:
            attributes = self._store.get((ref.entity_name, ref.id))
        if attributes is None:
            return None
        return Record(entity_name=ref.entity_name, id=ref.id, attributes=dict(attributes))

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def execute_multiple(self, request: BulkRequest, timeout: float | None = None) -> list[BulkItemResponse]:
        with self._lock:
            self.requests.append(request)
            queued = self._queued_errors.popleft() if self._queued_errors else None

        if queued is not None:
            raise queued
        if self.before_call is not None:
            self.before_call(request)

        if self.latency_seconds:
            if timeout is not None and self.latency_seconds > timeout:
                time.sleep(timeout)
                msg = f"Bulk request timed out after {timeout:.3f}s"
                raise TimeoutError(msg)
            time.sleep(self.latency_seconds)

        responses: list[BulkItemResponse] = []
        with self._lock:
            for index, sub in enumerate(request.requests):
                try:
                    responses.append(self._apply(index, sub))
                except _ItemFault as fault:
                    responses.append(
                        BulkItemResponse(request_index=index, fault=Fault(code=fault.code, message=fault.message))
                    )
                    if not request.continue_on_error:
                        break

        logger.debug(
            "bulk_request_applied",
            requests=len(request.requests),
            faults=sum(1 for item in responses if item.fault is not None),
        )
        return responses

    def _apply(self, index: int, sub: SubRequest) -> BulkItemResponse:
        if sub.kind == OperationKind.CREATE:
            if sub.record is None:
                raise _ItemFault(INVALID_ARGUMENT, "Create request carries no record")
            record_id = sub.record.id or uuid4()
            key = (sub.record.entity_name, record_id)
            if key in self._store:
                raise _ItemFault(DUPLICATE_RECORD, f"A record with id {record_id} already exists")
            self._store[key] = dict(sub.record.attributes)
            return BulkItemResponse(request_index=index, record_id=record_id)

        if sub.target is None:
            raise _ItemFault(INVALID_ARGUMENT, f"{sub.kind} request has no target")
        key = (sub.target.entity_name, sub.target.id)
        if key not in self._store:
            raise _ItemFault(RECORD_NOT_FOUND_CODE, f"{sub.target} does not exist")

        if sub.kind == OperationKind.UPDATE:
            if sub.record is not None:
                self._store[key].update(sub.record.attributes)
            return BulkItemResponse(request_index=index)

        if sub.kind == OperationKind.DELETE:
            del self._store[key]
            return BulkItemResponse(request_index=index)

        attributes = self._store[key]
        if sub.columns is not None and not sub.columns.all_columns:
            attributes = {name: attributes[name] for name in sub.columns.columns if name in attributes}
        record = Record(entity_name=sub.target.entity_name, id=sub.target.id, attributes=dict(attributes))
        return BulkItemResponse(request_index=index, record=record)
