"""Splitting an ordered operation list into bounded chunks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bulkrecords.models.bulk import Chunk

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkrecords.models.operation import Operation


def chunk_count(total: int, batch_size: int) -> int:
    """Number of chunks needed for ``total`` operations."""
    if batch_size < 1:
        msg = f"batch_size must be at least 1, got {batch_size}"
        raise ValueError(msg)
    return -(-total // batch_size)


def plan_chunks(operations: Sequence[Operation], batch_size: int) -> list[Chunk]:
    """Partition ``operations`` into chunks of ``batch_size``, numbered from 1.

    Order is preserved and nothing is dropped; only the last chunk may be
    shorter. Empty input yields no chunks.
    """
    if batch_size < 1:
        msg = f"batch_size must be at least 1, got {batch_size}"
        raise ValueError(msg)

    return [
        Chunk(number=i // batch_size + 1, operations=tuple(operations[i : i + batch_size]))
        for i in range(0, len(operations), batch_size)
    ]
