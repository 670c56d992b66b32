"""
RowModel Sub-Item Collections

Ordered views over the child rows of an entity, joined to the entity's
master row by a foreign key. Items are lightweight wrappers around rows;
a fresh wrapper is handed out on every access and two wrappers are equal
when they wrap the same row.
"""

import logging
from typing import Any, Callable, Iterator, List, Optional, Tuple, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from .entity import LoadState
from .events import EntityEvent, EventChannel, EventType
from .exceptions import ConfigurationError, IndexOutOfBoundsError
from .keys import KeyType, check_key, key_column_type, new_key
from .store import Row, RowState, Table

if TYPE_CHECKING:
    from .entity import BusinessEntity

logger = logging.getLogger(__name__)

RowPredicate = Callable[[Row], bool]


class CollectionSettings(BaseModel):
    """
    Table and key configuration of a sub-item collection.

    Empty parent settings default to the parent entity's master table and
    primary key; an unset key type defaults to the parent entity's.
    """
    model_config = ConfigDict(validate_assignment=True)

    table_name: str = ""
    primary_key_field: str = ""
    foreign_key_field: str = ""
    parent_table_name: str = ""
    parent_table_primary_key_field: str = ""
    primary_key_type: Optional[KeyType] = None


class SubItemCollectionItem:
    """One item of a sub-item collection, wrapping a single child row."""

    def __init__(self, collection: "SubItemCollection", row: Row):
        self.collection = collection
        self._row = row

    @property
    def parent_entity(self) -> "BusinessEntity":
        return self.collection.parent_entity

    @property
    def current_row(self) -> Row:
        return self._row

    @property
    def table_name(self) -> str:
        return self._row.table.name

    @property
    def item_state(self) -> RowState:
        return self._row.state

    @property
    def pk(self) -> Any:
        return self._row[self.collection.settings.primary_key_field]

    @property
    def id(self) -> str:
        return str(self.pk)

    @property
    def index_in_collection(self) -> int:
        return self.collection.index_of(self)

    def _internal_name(self, field_name: str, table: Table) -> str:
        return self.parent_entity.get_internal_field_name(field_name, table.name)

    def read_field(self, field_name: str, field_type: Optional[type] = None, ignore_nulls: bool = False) -> Any:
        row = self._row
        return self.parent_entity.field_accessor.read(row, self._internal_name(field_name, row.table),
                                                      field_type, ignore_nulls)

    def write_field(self, field_name: str, value: Any, force_dirty: bool = False) -> bool:
        """Write a field of the item's row; True if the row was marked dirty."""
        return self._write_row(self._row, field_name, value, force_dirty)

    def _write_row(self, row: Row, field_name: str, value: Any, force_dirty: bool) -> bool:
        internal_name = self._internal_name(field_name, row.table)
        changed = self.parent_entity.field_accessor.write(row, internal_name, value, force_dirty)
        if changed:
            self.parent_entity.data_updated(internal_name, row.table.name)
            self.collection.data_updated(internal_name, row)
        return changed

    def is_field_null(self, field_name: str) -> bool:
        return self._row.is_null(self._internal_name(field_name, self._row.table))

    def check_column(self, field_name: str, value: Any = None, data_type: Optional[type] = None) -> bool:
        self.parent_entity.field_accessor.check_column(self._row.table, self._internal_name(field_name, self._row.table),
                                                       value, data_type)
        return True

    def remove(self) -> bool:
        """Delete the item's row."""
        row = self._row
        row.delete()
        self.parent_entity.data_updated("", row.table.name)
        self.collection.data_updated("", row)
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubItemCollectionItem):
            return NotImplemented
        return self._row is other._row

    def __hash__(self) -> int:
        return id(self._row)

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.table_name!r}, state={self.item_state.value})"


def parse_sort_expression(expression: str) -> List[Tuple[str, bool]]:
    """
    Parse ``"field [ASC|DESC], ..."`` into ``(field, descending)`` pairs.
    """
    parts = []
    for part in expression.split(","):
        pieces = part.split()
        if not pieces:
            continue
        if len(pieces) > 2 or (len(pieces) == 2 and pieces[1].upper() not in ("ASC", "DESC")):
            raise ValueError(f"Invalid sort expression: {part.strip()!r}")
        parts.append((pieces[0], len(pieces) == 2 and pieces[1].upper() == "DESC"))
    return parts


def _sort_key(field_name: str) -> Callable[[Row], Any]:
    # nulls sort first
    def key(row: Row) -> Tuple[bool, Any]:
        value = row[field_name]
        return (value is not None, value if value is not None else 0)
    return key


class SubItemCollection:
    """
    Collection of child rows belonging to a parent entity.

    Subclasses declare ``settings`` (a CollectionSettings instance) and may
    override ``configure()`` to adjust a per-instance copy of them.
    """

    settings: CollectionSettings = CollectionSettings()
    item_class = SubItemCollectionItem

    def __init__(self, parent_entity: "BusinessEntity", settings: Optional[CollectionSettings] = None):
        self.parent_entity = parent_entity
        self.settings = (settings or type(self).settings).model_copy()
        self.events = EventChannel()
        self.load_state = LoadState.LOADING
        self._filter_master: Optional[RowPredicate] = None
        self._filter: Optional[RowPredicate] = None
        self._sort_by_master = ""
        self._sort_by = ""
        self._table: Optional[Table] = None

        self.configure()
        self._apply_defaults()
        self.reset_table()

    def configure(self) -> None:
        """Override to adjust ``self.settings`` before the table is attached."""
        pass

    def _apply_defaults(self) -> None:
        settings = self.settings
        if not settings.table_name:
            raise ConfigurationError(f"{type(self).__name__} has no table name configured.")
        if not settings.primary_key_field:
            raise ConfigurationError(f"{type(self).__name__} has no primary key field configured.")
        if settings.primary_key_type is None:
            settings.primary_key_type = self.parent_entity.primary_key_type
        if not settings.parent_table_name:
            settings.parent_table_name = self.parent_entity.master_table_name
        if not settings.parent_table_primary_key_field:
            settings.parent_table_primary_key_field = self.parent_entity.get_internal_field_name(
                self.parent_entity.primary_key_field, settings.parent_table_name)

    @property
    def primary_key_type(self) -> KeyType:
        return self.settings.primary_key_type

    @property
    def table(self) -> Table:
        return self._table

    def reset_table(self) -> None:
        """Re-attach the collection to its table in the parent entity's store."""
        settings = self.settings
        columns = [(settings.primary_key_field, key_column_type(self.primary_key_type))]
        if settings.foreign_key_field:
            columns.append((settings.foreign_key_field, key_column_type(self.parent_entity.primary_key_type)))
        table_name = self.parent_entity.get_internal_table_name(settings.table_name)
        self._table = self.parent_entity.store.ensure_table(table_name, columns)
        self.load_state = LoadState.LOAD_COMPLETE

    def parent_key(self) -> Any:
        """Primary key of the parent row the collection's rows point to."""
        settings = self.settings
        parent_table = self.parent_entity.get_table(settings.parent_table_name)
        return parent_table.rows[0][settings.parent_table_primary_key_field]

    # Filtering and sorting
    @property
    def filter_master(self) -> Optional[RowPredicate]:
        return self._filter_master

    @filter_master.setter
    def filter_master(self, predicate: Optional[RowPredicate]) -> None:
        self._filter_master = predicate

    @property
    def filter(self) -> Optional[RowPredicate]:
        return self._filter

    @filter.setter
    def filter(self, predicate: Optional[RowPredicate]) -> None:
        self._filter = predicate

    def clear_filter(self) -> None:
        """Clear the individual filter (the master filter stays)."""
        self._filter = None

    @property
    def sort_by_master(self) -> str:
        return self._sort_by_master

    @sort_by_master.setter
    def sort_by_master(self, expression: str) -> None:
        parse_sort_expression(expression or "")
        self._sort_by_master = expression or ""

    @property
    def sort_by(self) -> str:
        return self._sort_by

    @sort_by.setter
    def sort_by(self, expression: str) -> None:
        parse_sort_expression(expression or "")
        self._sort_by = expression or ""

    @property
    def complete_sort_expression(self) -> str:
        return ", ".join(part for part in (self._sort_by_master, self._sort_by) if part)

    def _matcher(self) -> RowPredicate:
        foreign_key_field = self.settings.foreign_key_field
        parent_key = self.parent_key() if foreign_key_field else None
        filter_master, row_filter = self._filter_master, self._filter

        def belongs(row: Row) -> bool:
            if foreign_key_field and row[foreign_key_field] != parent_key:
                return False
            if filter_master is not None and not filter_master(row):
                return False
            if row_filter is not None and not row_filter(row):
                return False
            return True
        return belongs

    def _rows(self) -> List[Row]:
        rows = self._table.select(self._matcher())
        # stable sort, least significant field first
        for field_name, descending in reversed(parse_sort_expression(self.complete_sort_expression)):
            internal_name = self.parent_entity.get_internal_field_name(field_name, self._table.name)
            rows.sort(key=_sort_key(internal_name), reverse=descending)
        return rows

    # Items
    def _make_item(self, row: Row) -> SubItemCollectionItem:
        return self.item_class(self, row)

    def __len__(self) -> int:
        return len(self._rows())

    def __iter__(self) -> Iterator[SubItemCollectionItem]:
        for row in self._rows():
            yield self._make_item(row)

    def __getitem__(self, index: int) -> SubItemCollectionItem:
        rows = self._rows()
        if not 0 <= index < len(rows):
            raise IndexOutOfBoundsError(f"Index {index} out of bounds for {len(rows)} items.")
        return self._make_item(rows[index])

    def __contains__(self, item: object) -> bool:
        return self.index_of(item) >= 0

    def index_of(self, item: object) -> int:
        """Position of the item in the collection, -1 if it is not part of it."""
        if not isinstance(item, SubItemCollectionItem):
            return -1
        for index, row in enumerate(self._rows()):
            if row is item.current_row:
                return index
        return -1

    def get_item_by_key(self, key: Any) -> SubItemCollectionItem:
        """Item whose primary key equals ``key``."""
        key = check_key(key, self.primary_key_type)
        belongs = self._matcher()
        for row in self._table.find_all(self.settings.primary_key_field, key):
            if belongs(row):
                return self._make_item(row)
        raise IndexOutOfBoundsError(f"No item with key '{key}'.")

    def add(self) -> SubItemCollectionItem:
        return self.add_new_row()

    def add_new_row(self) -> SubItemCollectionItem:
        """Add a new child row with a generated key, linked to the parent row."""
        settings = self.settings
        table = self._table
        row = table.new_row()
        row[settings.primary_key_field] = new_key(table, settings.primary_key_field, self.primary_key_type)
        if settings.foreign_key_field:
            row[settings.foreign_key_field] = self.parent_key()

        self.parent_entity.populate_new_record(row, table.name)
        self.add_new_row_information(row)
        table.add_row(row)
        logger.debug(f"Added row {row[settings.primary_key_field]!r} to '{table.name}'")

        self.parent_entity.data_updated("", table.name)
        self.data_updated("", row)
        return self._make_item(row)

    def add_new_row_information(self, row: Row) -> None:
        """Called for every new row before it is added; override to fill in extra values."""
        pass

    def remove(self, index: int) -> bool:
        return self[index].remove()

    def remove_by_key(self, key: Any) -> bool:
        """Remove the item with the given primary key; False if there is none."""
        key = check_key(key, self.primary_key_type)
        belongs = self._matcher()
        for row in self._table.find_all(self.settings.primary_key_field, key):
            if belongs(row):
                return self._make_item(row).remove()
        return False

    def clear(self) -> None:
        """Remove every item of the collection."""
        for item in list(self):
            item.remove()

    def data_updated(self, field_name: str, row: Row) -> None:
        """Publish LIST_CHANGED for a changed, added or removed row."""
        self.events.publish(EntityEvent(EventType.LIST_CHANGED, source=self,
                                        field_name=field_name, table_name=row.table.name, row=row))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.settings.table_name!r})"


__all__ = [
    "CollectionSettings",
    "SubItemCollection",
    "SubItemCollectionItem",
    "parse_sort_expression",
]
