"""Per-kind request construction and response decoding.

Each operation kind differs only in how a sub-request is built and how a
successful response item is read back, so the chunk executor is generic and
takes one :class:`KindStrategy`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from bulkrecords.models.bulk import SubRequest
from bulkrecords.models.operation import OperationKind, RecordRef
from bulkrecords.models.outcome import BatchError, ErrorSeverity, OutcomeStatus, RecordOutcome

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Sequence

    from bulkrecords.models.bulk import BulkItemResponse, Fault
    from bulkrecords.models.operation import Operation

    NotFoundPredicate = Callable[[Fault], bool]


def build_create_request(operation: Operation) -> SubRequest:
    return SubRequest(kind=OperationKind.CREATE, record=operation.as_record())


def build_update_request(operation: Operation) -> SubRequest:
    return SubRequest(
        kind=OperationKind.UPDATE,
        target=operation.target,
        record=operation.as_record(),
    )


def build_delete_request(operation: Operation) -> SubRequest:
    return SubRequest(kind=OperationKind.DELETE, target=operation.target)


def build_retrieve_request(operation: Operation) -> SubRequest:
    return SubRequest(
        kind=OperationKind.RETRIEVE,
        target=operation.target,
        columns=operation.columns,
    )


def decode_create(operation: Operation, item: BulkItemResponse) -> RecordOutcome:
    created = None
    if item.record_id is not None:
        created = RecordRef(entity_name=operation.entity_name, id=item.record_id)
    return RecordOutcome(status=OutcomeStatus.SUCCESS, target=operation.target, created=created)


def decode_modification(operation: Operation, item: BulkItemResponse) -> RecordOutcome:  # noqa: ARG001
    """Update and delete responses carry nothing beyond success."""
    return RecordOutcome(status=OutcomeStatus.SUCCESS, target=operation.target)


def decode_retrieve(operation: Operation, item: BulkItemResponse) -> RecordOutcome:
    return RecordOutcome(status=OutcomeStatus.SUCCESS, target=operation.target, record=item.record)


def validate_update(operations: Sequence[Operation]) -> list[str]:
    """Every update must address an existing record; the nil UUID counts as missing."""
    missing = sum(1 for op in operations if op.record_id is None or op.record_id.int == 0)
    if missing:
        return [
            f"Found {missing} records without ids. All records must have valid ids "
            "for update operations."
        ]
    return []


def _no_validation(operations: Sequence[Operation]) -> list[str]:  # noqa: ARG001
    return []


@dataclass(frozen=True)
class KindStrategy:
    """How one operation kind maps onto the bulk endpoint."""

    kind: OperationKind
    build_request: Callable[[Operation], SubRequest]
    decode_success: Callable[[Operation, BulkItemResponse], RecordOutcome]
    validate: Callable[[Sequence[Operation]], list[str]] = _no_validation
    distinguishes_not_found: bool = False


STRATEGIES: dict[OperationKind, KindStrategy] = {
    OperationKind.CREATE: KindStrategy(
        kind=OperationKind.CREATE,
        build_request=build_create_request,
        decode_success=decode_create,
    ),
    OperationKind.UPDATE: KindStrategy(
        kind=OperationKind.UPDATE,
        build_request=build_update_request,
        decode_success=decode_modification,
        validate=validate_update,
    ),
    OperationKind.DELETE: KindStrategy(
        kind=OperationKind.DELETE,
        build_request=build_delete_request,
        decode_success=decode_modification,
    ),
    OperationKind.RETRIEVE: KindStrategy(
        kind=OperationKind.RETRIEVE,
        build_request=build_retrieve_request,
        decode_success=decode_retrieve,
        distinguishes_not_found=True,
    ),
}


def strategy_for(kind: OperationKind) -> KindStrategy:
    return STRATEGIES[OperationKind(kind)]


def not_found_predicate(codes: Collection[int | str]) -> NotFoundPredicate:
    """Build a predicate matching faults whose code is one of ``codes``.

    Codes compare as strings so ``-2147220969`` and ``"-2147220969"`` match.
    """
    normalized = frozenset(str(code).lower() for code in codes)

    def is_not_found(fault: Fault) -> bool:
        return str(fault.code).lower() in normalized

    return is_not_found


def decode_item(
    strategy: KindStrategy,
    operation: Operation,
    item: BulkItemResponse,
    chunk_number: int,
    request_index: int,
    is_not_found: NotFoundPredicate,
) -> RecordOutcome:
    """Classify one response item as success, failure or not-found."""
    if item.fault is None:
        return strategy.decode_success(operation, item)

    if strategy.distinguishes_not_found and is_not_found(item.fault):
        return RecordOutcome(status=OutcomeStatus.NOT_FOUND, target=operation.target)

    return RecordOutcome(
        status=OutcomeStatus.FAILURE,
        target=operation.target,
        error=BatchError(
            chunk_number=chunk_number,
            request_index=request_index,
            error_code=str(item.fault.code),
            error_message=item.fault.message,
            severity=ErrorSeverity.ERROR,
            target=operation.target,
        ),
    )
