"""Record identities, payloads and the logical operations submitted in bulk."""

from __future__ import annotations

from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class OperationKind(StrEnum):
    """Kind of work an operation performs against one record."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RETRIEVE = "retrieve"


def _require_entity_name(value: str) -> str:
    if not value.strip():
        msg = "entity_name must not be empty"
        raise ValueError(msg)
    return value


class RecordRef(BaseModel):
    """Identity of a remote record: table name plus key."""

    model_config = ConfigDict(frozen=True)

    entity_name: str
    id: UUID

    @field_validator("entity_name")
    @classmethod
    def validate_entity_name(cls, value: str) -> str:
        """Entity name must be non-empty."""
        return _require_entity_name(value)

    def __str__(self) -> str:
        return f"{self.entity_name}({self.id})"


class Record(BaseModel):
    """A record as sent to or returned from the service."""

    entity_name: str
    id: UUID | None = None
    attributes: dict[str, Any] = {}

    @field_validator("entity_name")
    @classmethod
    def validate_entity_name(cls, value: str) -> str:
        return _require_entity_name(value)

    def ref(self) -> RecordRef:
        """Return the identity of this record."""
        if self.id is None:
            msg = f"{self.entity_name} record has no id"
            raise ValueError(msg)
        return RecordRef(entity_name=self.entity_name, id=self.id)


class ColumnSelector(BaseModel):
    """Columns to fetch on retrieval; all columns when ``all_columns`` is set."""

    model_config = ConfigDict(frozen=True)

    all_columns: bool = False
    columns: tuple[str, ...] = ()

    @classmethod
    def all(cls) -> ColumnSelector:
        return cls(all_columns=True)

    @classmethod
    def of(cls, *columns: str) -> ColumnSelector:
        return cls(columns=tuple(columns))


class Operation(BaseModel):
    """One logical unit of work against one record. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    kind: OperationKind
    entity_name: str
    record_id: UUID | None = None
    payload: dict[str, Any] | None = None
    columns: ColumnSelector | None = None

    @field_validator("entity_name")
    @classmethod
    def validate_entity_name(cls, value: str) -> str:
        return _require_entity_name(value)

    @model_validator(mode="after")
    def validate_shape(self) -> Operation:
        """Delete and retrieve operations always address an existing record."""
        if self.kind in (OperationKind.DELETE, OperationKind.RETRIEVE) and self.record_id is None:
            msg = f"{self.kind} operation requires a record_id"
            raise ValueError(msg)
        return self

    @property
    def target(self) -> RecordRef | None:
        if self.record_id is None:
            return None
        return RecordRef(entity_name=self.entity_name, id=self.record_id)

    @classmethod
    def create(cls, record: Record) -> Operation:
        return cls(
            kind=OperationKind.CREATE,
            entity_name=record.entity_name,
            record_id=record.id,
            payload=dict(record.attributes),
        )

    @classmethod
    def update(cls, record: Record) -> Operation:
        # Missing ids are reported by the orchestrator for the whole input at once
        return cls(
            kind=OperationKind.UPDATE,
            entity_name=record.entity_name,
            record_id=record.id,
            payload=dict(record.attributes),
        )

    @classmethod
    def delete(cls, ref: RecordRef) -> Operation:
        return cls(kind=OperationKind.DELETE, entity_name=ref.entity_name, record_id=ref.id)

    @classmethod
    def retrieve(cls, ref: RecordRef, columns: ColumnSelector | None = None) -> Operation:
        return cls(
            kind=OperationKind.RETRIEVE,
            entity_name=ref.entity_name,
            record_id=ref.id,
            columns=columns or ColumnSelector.all(),
        )

    def as_record(self) -> Record:
        """Record carrying this operation's payload, for create and update requests."""
        return Record(
            entity_name=self.entity_name,
            id=self.record_id,
            attributes=dict(self.payload or {}),
        )
