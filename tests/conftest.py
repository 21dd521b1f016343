"""Shared test fixtures for the bulk record engine."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from bulkrecords.models.config import BulkClientConfig
from bulkrecords.models.operation import Operation, Record, RecordRef
from bulkrecords.services.bulk_client import BulkRecordClient
from bulkrecords.services.memory_endpoint import InMemoryBulkEndpoint

if TYPE_CHECKING:
    from collections.abc import Callable

ENTITY = "account"


def make_records(count: int, entity_name: str = ENTITY, with_ids: bool = False) -> list[Record]:
    """Build ``count`` records with a distinguishing ``name`` attribute."""
    return [
        Record(
            entity_name=entity_name,
            id=uuid4() if with_ids else None,
            attributes={"name": f"Account {i}", "index": i},
        )
        for i in range(count)
    ]


def make_refs(count: int, entity_name: str = ENTITY) -> list[RecordRef]:
    return [RecordRef(entity_name=entity_name, id=uuid4()) for _ in range(count)]


def make_create_operations(count: int) -> list[Operation]:
    return [Operation.create(record) for record in make_records(count)]


@pytest.fixture
def config() -> BulkClientConfig:
    """Configuration with no retry delay so tests never wait on backoff."""
    return BulkClientConfig(
        retry_delay_ms=0,
        max_retry_delay_ms=0,
        max_concurrent_chunks=4,
        _env_file=None,
    )


@pytest.fixture
def endpoint() -> InMemoryBulkEndpoint:
    """Empty in-memory bulk endpoint."""
    return InMemoryBulkEndpoint()


@pytest.fixture
def client(endpoint: InMemoryBulkEndpoint, config: BulkClientConfig) -> BulkRecordClient:
    """Bulk client wired to the in-memory endpoint."""
    return BulkRecordClient(endpoint, config)


@pytest.fixture
def seeded_refs(endpoint: InMemoryBulkEndpoint) -> list[RecordRef]:
    """Twelve records already stored in the endpoint."""
    return endpoint.seed(make_records(12, with_ids=True))


@pytest.fixture
def record_factory() -> Callable[..., list[Record]]:
    """Factory building unsaved records: ``record_factory(count, with_ids=False)``."""
    return make_records


@pytest.fixture
def ref_factory() -> Callable[..., list[RecordRef]]:
    """Factory building references to records that do not exist."""
    return make_refs


@pytest.fixture
def operation_factory() -> Callable[[int], list[Operation]]:
    """Factory building create operations."""
    return make_create_operations
