"""
RowModel Snapshot Models

Pydantic models describing a row store for diagnostic dumps.
"""

import base64
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer

if TYPE_CHECKING:
    from .store import RowStore, Table


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return str(value)


class ColumnSnapshot(BaseModel):
    """Column schema entry"""
    name: str
    data_type: str
    max_length: int = -1


class RowSnapshot(BaseModel):
    """One row with its change state and current values"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    state: str
    values: Dict[str, Any] = Field(default_factory=dict)

    @field_serializer("values")
    def _serialize_values(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return {name: _jsonable(value) for name, value in values.items()}


class TableSnapshot(BaseModel):
    name: str
    columns: List[ColumnSnapshot] = Field(default_factory=list)
    rows: List[RowSnapshot] = Field(default_factory=list)

    @classmethod
    def from_table(cls, table: "Table") -> "TableSnapshot":
        return cls(
            name=table.name,
            columns=[
                ColumnSnapshot(name=c.name, data_type=c.data_type.__name__, max_length=c.max_length)
                for c in table.columns
            ],
            rows=[RowSnapshot(state=row.state.value, values=row.to_dict()) for row in table.rows],
        )


class StoreSnapshot(BaseModel):
    """Full store dump returned by ``RowStore.dump()``"""
    name: str
    tables: List[TableSnapshot] = Field(default_factory=list)

    @classmethod
    def from_store(cls, store: "RowStore") -> "StoreSnapshot":
        return cls(name=store.name, tables=[TableSnapshot.from_table(t) for t in store.tables])


__all__ = ["ColumnSnapshot", "RowSnapshot", "TableSnapshot", "StoreSnapshot"]
