"""Bulk engine core -- pure functions for classification, backoff, chunking and aggregation."""

from __future__ import annotations

from bulkrecords.core.aggregation import (
    cancelled_chunk_result,
    failed_chunk_result,
    fold_results,
    missing_response_outcome,
    summarize_chunk,
)
from bulkrecords.core.backoff import DEFAULT_MAX_DELAY_MS, jittered_delay_ms, retry_delay_ms
from bulkrecords.core.chunking import chunk_count, plan_chunks
from bulkrecords.core.request_builders import (
    STRATEGIES,
    KindStrategy,
    decode_item,
    not_found_predicate,
    strategy_for,
)
from bulkrecords.core.transient import is_transient

__all__ = [
    "DEFAULT_MAX_DELAY_MS",
    "STRATEGIES",
    "KindStrategy",
    "cancelled_chunk_result",
    "chunk_count",
    "decode_item",
    "failed_chunk_result",
    "fold_results",
    "is_transient",
    "jittered_delay_ms",
    "missing_response_outcome",
    "not_found_predicate",
    "plan_chunks",
    "retry_delay_ms",
    "strategy_for",
    "summarize_chunk",
]
