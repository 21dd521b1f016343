"""Service protocols for the collaborators the bulk engine depends on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from bulkrecords.models.bulk import BulkItemResponse, BulkRequest
    from bulkrecords.models.progress import ProgressSnapshot


class BulkEndpointProtocol(Protocol):
    """Remote endpoint executing many sub-requests in one call.

    Responses are positionally aligned with ``request.requests`` and a fault
    in one item does not abort its siblings when ``continue_on_error`` is
    set. Implementations must be safe to call from several threads and
    should raise ``TimeoutError`` when ``timeout`` seconds elapse.
    """

    def execute_multiple(
        self,
        request: BulkRequest,
        timeout: float | None = None,
    ) -> list[BulkItemResponse]: ...


class ProgressSinkProtocol(Protocol):
    """Callback receiving progress snapshots while a batch runs."""

    def __call__(self, snapshot: ProgressSnapshot) -> None: ...
