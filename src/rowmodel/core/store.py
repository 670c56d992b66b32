"""
RowModel Store - In-Memory Relational Storage

Named tables of rows with named, typed columns. Rows track their own
change state so an owning entity can tell whether anything is pending,
and deletions stay visible until changes are accepted.

Lookups by column value go through lazily built per-column indexes
(value -> rows), so resolving a foreign key never interpolates values
into a search expression.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .exceptions import ColumnNotFoundError, RowDeletedError, TableNotFoundError

logger = logging.getLogger(__name__)


class _NullType:
    """Marker returned for null cells when nulls are not replaced by defaults."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NULL"

    def __reduce__(self):
        return (_NullType, ())


NULL = _NullType()


class RowState(Enum):
    """Change state of a row"""
    DETACHED = "detached"
    ADDED = "added"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class Column:
    """Column definition: name, python type and optional maximum length"""
    name: str
    data_type: type = object
    max_length: int = -1


ColumnSpec = Union[Column, str, Tuple[str, type], Tuple[str, type, int]]


def _as_column(spec: ColumnSpec) -> Column:
    if isinstance(spec, Column):
        return Column(spec.name, spec.data_type, spec.max_length)
    if isinstance(spec, str):
        return Column(spec)
    return Column(*spec)


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def _same_value(stored: Any, value: Any) -> bool:
    return type(stored) is type(value) and stored == value


class Row:
    """A single row of a table. Cells hold ``None`` for null."""

    __slots__ = ("_table", "_values", "_original", "_state", "_discarded", "__weakref__")

    def __init__(self, table: "Table"):
        self._table = table
        self._values: Dict[str, Any] = {name: None for name in table.column_names}
        self._original: Optional[Dict[str, Any]] = None
        self._state = RowState.DETACHED
        self._discarded = False

    @property
    def table(self) -> "Table":
        return self._table

    @property
    def state(self) -> RowState:
        return self._state

    @property
    def is_live(self) -> bool:
        """True while the row can be read and written."""
        return not self._discarded and self._state != RowState.DELETED

    def _check_live(self) -> None:
        if not self.is_live:
            raise RowDeletedError(source=self._table.name)

    def _check_column(self, column: str) -> None:
        if column not in self._values:
            # columns added while the row was detached
            if not self._table.has_column(column):
                raise ColumnNotFoundError(column, self._table.name)
            self._add_column(column)

    def __getitem__(self, column: str) -> Any:
        self._check_live()
        self._check_column(column)
        return self._values[column]

    def __setitem__(self, column: str, value: Any) -> None:
        self.set_value(column, value)

    def __contains__(self, column: str) -> bool:
        return column in self._values

    def get(self, column: str, default: Any = None) -> Any:
        self._check_live()
        if not self._table.has_column(column):
            return default
        return self._values.get(column)

    def is_null(self, column: str) -> bool:
        return self[column] is None

    def set_value(self, column: str, value: Any, force: bool = False) -> bool:
        """
        Assign a cell value.

        Args:
            column: Column name (must exist)
            value: New value (``None`` for null)
            force: Mark the row modified even if the value is unchanged

        Returns:
            True if the row state was touched
        """
        self._check_live()
        self._check_column(column)
        old_value = self._values[column]
        if not force and _same_value(old_value, value):
            return False

        self._mark_modified()
        self._values[column] = value
        if self._state != RowState.DETACHED:
            self._table._reindex(self, column, old_value, value)
        return True

    def _mark_modified(self) -> None:
        if self._state == RowState.UNCHANGED:
            self._original = dict(self._values)
            self._state = RowState.MODIFIED

    def delete(self) -> None:
        """
        Delete the row.

        Added rows leave the table immediately; all other rows are marked
        deleted and physically removed when the table accepts its changes.
        """
        if self._discarded or self._state == RowState.DELETED:
            return
        if self._state == RowState.DETACHED:
            self._discarded = True
            return
        if self._state == RowState.ADDED:
            self._table._discard(self)
            return

        if self._state == RowState.UNCHANGED:
            self._original = dict(self._values)
        self._table._unindex(self)
        self._state = RowState.DELETED

    def to_dict(self) -> Dict[str, Any]:
        """Current cell values, available regardless of state (diagnostics)."""
        return dict(self._values)

    def _add_column(self, column: str) -> None:
        self._values.setdefault(column, None)
        if self._original is not None:
            self._original.setdefault(column, None)

    def __repr__(self) -> str:
        return f"Row(table={self._table.name!r}, state={self._state.value}, values={self._values!r})"


class Table:
    """
    A named table of rows.

    ``rows`` includes deleted rows (like a change-tracking data table);
    ``live_rows()`` and the search methods skip them.
    """

    def __init__(self, name: str, columns: Optional[Iterable[ColumnSpec]] = None,
                 store: Optional["RowStore"] = None):
        self.name = name
        self.store = store
        self._columns: Dict[str, Column] = {}
        self._rows: List[Row] = []
        self._indexes: Dict[str, Dict[Any, List[Row]]] = {}
        for spec in columns or ():
            self.add_column(spec)

    # Schema
    @property
    def columns(self) -> List[Column]:
        return list(self._columns.values())

    @property
    def column_names(self) -> List[str]:
        return list(self._columns)

    def has_column(self, name: str) -> bool:
        return name in self._columns

    def get_column(self, name: str) -> Column:
        try:
            return self._columns[name]
        except KeyError:
            raise ColumnNotFoundError(name, self.name) from None

    def add_column(self, spec: ColumnSpec, data_type: Optional[type] = None,
                   max_length: Optional[int] = None) -> Column:
        """
        Add a column if it is not already part of the table.

        Existing columns are returned untouched; existing rows receive a
        null cell for the new column.
        """
        column = _as_column(spec)
        if data_type is not None:
            column.data_type = data_type
        if max_length is not None:
            column.max_length = max_length

        existing = self._columns.get(column.name)
        if existing is not None:
            return existing

        self._columns[column.name] = column
        for row in self._rows:
            row._add_column(column.name)
        logger.debug(f"Added column '{column.name}' ({column.data_type.__name__}) to table '{self.name}'")
        return column

    # Rows
    @property
    def rows(self) -> List[Row]:
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(list(self._rows))

    def live_rows(self) -> List[Row]:
        return [row for row in self._rows if row.is_live]

    def new_row(self) -> Row:
        """Create a detached row with this table's schema."""
        return Row(self)

    def add_row(self, row: Optional[Row] = None, **values: Any) -> Row:
        """
        Append a row to the table in the ADDED state.

        Args:
            row: A detached row created by ``new_row()``; a new one if omitted
            **values: Cell values to assign before the row is appended
        """
        if row is None:
            row = self.new_row()
        if row.table is not self:
            raise ValueError(f"Row belongs to table '{row.table.name}', not '{self.name}'")
        if row.state != RowState.DETACHED or row._discarded:
            raise ValueError("Only new detached rows can be added to a table")

        for column, value in values.items():
            if not self.has_column(column):
                self.add_column(column, type(value) if value is not None else object)
            row._values[column] = value
        for column in self._columns:
            row._values.setdefault(column, None)

        row._state = RowState.ADDED
        self._rows.append(row)
        for column, index in self._indexes.items():
            self._index_add(index, row, row._values.get(column))
        return row

    def _discard(self, row: Row) -> None:
        self._unindex(row)
        self._rows.remove(row)
        row._discarded = True
        row._state = RowState.DETACHED

    def clear(self) -> None:
        """Remove all rows without recording deletions."""
        for row in self._rows:
            row._discarded = True
            row._state = RowState.DETACHED
        self._rows.clear()
        self._indexes.clear()

    # Search
    def select(self, predicate: Optional[Callable[[Row], bool]] = None,
               sort_key: Optional[Callable[[Row], Any]] = None,
               reverse: bool = False) -> List[Row]:
        """Live rows matching ``predicate``, optionally sorted."""
        rows = [row for row in self._rows if row.is_live and (predicate is None or predicate(row))]
        if sort_key is not None:
            rows.sort(key=sort_key, reverse=reverse)
        return rows

    def find_all(self, column: str, value: Any) -> List[Row]:
        """
        Live rows whose ``column`` holds ``value``, in table order.

        Matching is exact: the stored value must be of the same type, so
        ``True`` or ``1.0`` never match an int key ``1``.
        """
        if not self.has_column(column):
            raise ColumnNotFoundError(column, self.name)
        if not _hashable(value):
            return [row for row in self._rows if row.is_live and _same_value(row._values[column], value)]

        index = self._indexes.get(column)
        if index is None:
            index = self._build_index(column)
        # equal hashes put 1, 1.0 and True in one bucket
        matches = [row for row in index.get(value, []) if type(row._values[column]) is type(value)]
        if len(matches) > 1:
            matches.sort(key=self._rows.index)
        return matches

    def find(self, column: str, value: Any) -> Optional[Row]:
        """First live row whose ``column`` equals ``value``."""
        matches = self.find_all(column, value)
        return matches[0] if matches else None

    def _build_index(self, column: str) -> Dict[Any, List[Row]]:
        index: Dict[Any, List[Row]] = {}
        for row in self._rows:
            if row.is_live:
                self._index_add(index, row, row._values[column])
        self._indexes[column] = index
        return index

    @staticmethod
    def _index_add(index: Dict[Any, List[Row]], row: Row, value: Any) -> None:
        if value is not None and _hashable(value):
            index.setdefault(value, []).append(row)

    @staticmethod
    def _index_remove(index: Dict[Any, List[Row]], row: Row, value: Any) -> None:
        if value is None or not _hashable(value):
            return
        bucket = index.get(value)
        if bucket and row in bucket:
            bucket.remove(row)
            if not bucket:
                del index[value]

    def _reindex(self, row: Row, column: str, old_value: Any, new_value: Any) -> None:
        index = self._indexes.get(column)
        if index is None:
            return
        self._index_remove(index, row, old_value)
        self._index_add(index, row, new_value)

    def _unindex(self, row: Row) -> None:
        for column, index in self._indexes.items():
            self._index_remove(index, row, row._values.get(column))

    # Change tracking
    def has_changes(self) -> bool:
        return any(row.state in (RowState.ADDED, RowState.MODIFIED, RowState.DELETED) for row in self._rows)

    def accept_changes(self) -> None:
        """Commit pending changes: deleted rows go away, everything else is unchanged."""
        kept = []
        for row in self._rows:
            if row.state == RowState.DELETED:
                row._discarded = True
                row._state = RowState.DETACHED
                continue
            row._state = RowState.UNCHANGED
            row._original = None
            kept.append(row)
        self._rows = kept

    def reject_changes(self) -> None:
        """Roll every row back to its last accepted version."""
        kept = []
        for row in self._rows:
            if row.state == RowState.ADDED:
                row._discarded = True
                row._state = RowState.DETACHED
                continue
            if row._original is not None:
                row._values = dict(row._original)
                row._original = None
            row._state = RowState.UNCHANGED
            kept.append(row)
        self._rows = kept
        self._indexes.clear()

    def __repr__(self) -> str:
        return f"Table(name={self.name!r}, columns={self.column_names!r}, rows={len(self._rows)})"


class RowStore:
    """
    In-memory relational store: an ordered set of named tables.

    Each business entity owns one store. Nothing here is thread-safe;
    callers serialize access (one store per logical transaction).
    """

    def __init__(self, name: str = "RowStore"):
        self.name = name
        self._tables: Dict[str, Table] = {}

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    @property
    def table_names(self) -> List[str]:
        return list(self._tables)

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    def __getitem__(self, name: str) -> Table:
        try:
            return self._tables[name]
        except KeyError:
            raise TableNotFoundError(f"Table '{name}' not in store '{self.name}'.") from None

    def __iter__(self) -> Iterator[Table]:
        return iter(self.tables)

    def add_table(self, name: str, columns: Optional[Iterable[ColumnSpec]] = None) -> Table:
        """Create a new table; an existing table of that name is an error."""
        if name in self._tables:
            raise ValueError(f"Table '{name}' already exists in store '{self.name}'")
        table = Table(name, columns, store=self)
        self._tables[name] = table
        return table

    def ensure_table(self, name: str, columns: Optional[Iterable[ColumnSpec]] = None) -> Table:
        """Return the named table, creating it (and any missing columns) as needed."""
        table = self._tables.get(name)
        if table is None:
            return self.add_table(name, columns)
        for spec in columns or ():
            table.add_column(spec)
        return table

    def remove_table(self, name: str) -> bool:
        return self._tables.pop(name, None) is not None

    def has_changes(self) -> bool:
        return any(table.has_changes() for table in self._tables.values())

    def accept_changes(self) -> None:
        for table in self._tables.values():
            table.accept_changes()

    def reject_changes(self) -> None:
        for table in self._tables.values():
            table.reject_changes()

    def copy(self) -> "RowStore":
        """Independent copy of schema, rows, row states and original values."""
        clone = RowStore(self.name)
        for table in self._tables.values():
            table_copy = clone.add_table(table.name, table.columns)
            for row in table._rows:
                row_copy = Row(table_copy)
                row_copy._values = dict(row._values)
                row_copy._original = dict(row._original) if row._original is not None else None
                row_copy._state = row._state
                table_copy._rows.append(row_copy)
        return clone

    def dump(self, indent: Optional[int] = 2) -> str:
        """Structured JSON dump of every table and row (diagnostics only)."""
        from .snapshot import StoreSnapshot
        return StoreSnapshot.from_store(self).model_dump_json(indent=indent)

    def __repr__(self) -> str:
        return f"RowStore(name={self.name!r}, tables={self.table_names!r})"


__all__ = ["NULL", "RowState", "Column", "ColumnSpec", "Row", "Table", "RowStore"]
