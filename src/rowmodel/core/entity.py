"""
RowModel Business Entity

A business entity owns a row store and designates one table as its master
table; the first row of that table is the entity itself. Concrete entities
subclass BusinessEntity and declare their fields:

    class Payment(BusinessEntity):
        master_table = "Payments"
        primary_key_field = "pk_payment"

        amount = Field("amount", Decimal)
        reference = Field("reference", str)
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING

from .events import EntityEvent, EventChannel, EventType
from .exceptions import RowDeletedError
from .fields import Field, FieldAccessor, InvalidFieldBehavior, OptionalField
from .keys import KeyType, key_column_type, new_key
from .mixins import PersistenceMixin
from .store import Row, RowState, RowStore, Table

if TYPE_CHECKING:
    from ..persistence import PersistenceBackend

logger = logging.getLogger(__name__)


class LoadState(Enum):
    """Lifecycle of an entity instance"""
    LOADING = "loading"
    LOAD_COMPLETE = "load_complete"
    DELETED = "deleted"


class BusinessEntity(PersistenceMixin):
    """
    Base class for business entities.

    Class configuration (all optional):
        master_table: Name of the master table; the class name if omitted
        primary_key_field: Primary key column of the master table
        primary_key_type: KeyType of generated keys; the configured default if omitted
        invalid_field_behavior: Policy for values that do not fit; the configured default if omitted
    """

    master_table: Optional[str] = None
    primary_key_field: str = "id"
    primary_key_type: Optional[KeyType] = None
    invalid_field_behavior: Optional[InvalidFieldBehavior] = None

    _fields: Dict[str, Field] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        fields = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Field):
                    fields[name] = value
        cls._fields = fields

    def __init__(self, store: Optional[RowStore] = None, backend: Optional['PersistenceBackend'] = None):
        # Import here to avoid circular dependency
        from ..config import get_config

        entity_config = get_config().entity
        if self.primary_key_type is None:
            self.primary_key_type = entity_config.primary_key_type
        if self.invalid_field_behavior is None:
            self.invalid_field_behavior = entity_config.invalid_field_behavior

        self.events = EventChannel()
        self.field_accessor = FieldAccessor(self.invalid_field_behavior)
        self.load_state = LoadState.LOADING
        self._backend = backend
        self._field_maps: Dict[str, str] = {}
        self._table_maps: Dict[str, str] = {}
        self._is_dirty_override = False

        self.configure()

        if store is None:
            self.store = RowStore(type(self).__name__)
            self.new_entity()
        else:
            self.store = store
            # raises TableNotFoundError for a store of the wrong shape
            self.store[self.get_internal_table_name(self.master_table_name)]

        self.load_sub_item_collections()
        self.load_state = LoadState.LOAD_COMPLETE

    # Hooks
    def configure(self) -> None:
        """Called before any data is created or attached; set field and table maps here."""
        pass

    def populate_new_record(self, row: Row, table_name: str) -> None:
        """Called for every new row before it is added to its table."""
        pass

    def load_sub_item_collections(self) -> None:
        """Called once the store is in place; create sub-item collections here."""
        pass

    # Master record
    @property
    def master_table_name(self) -> str:
        return self.master_table or type(self).__name__

    def new_entity(self) -> Row:
        """Create the master table (if needed) and a new master row with a generated key."""
        table_name = self.get_internal_table_name(self.master_table_name)
        pk_field = self.get_internal_field_name(self.primary_key_field)
        table = self.store.ensure_table(table_name, [(pk_field, key_column_type(self.primary_key_type))])
        self._ensure_declared_columns(table)

        row = table.new_row()
        row[pk_field] = new_key(table, pk_field, self.primary_key_type)
        self.populate_new_record(row, table.name)
        table.add_row(row)
        logger.debug(f"Created new {type(self).__name__} with key {row[pk_field]!r}")
        return row

    def _ensure_declared_columns(self, table: Table) -> None:
        for descriptor in self._fields.values():
            if isinstance(descriptor, OptionalField):
                continue
            if descriptor.table_name and self.get_internal_table_name(descriptor.table_name) != table.name:
                continue
            column = self.get_internal_field_name(descriptor.column)
            table.add_column(column, descriptor.field_type)

    def get_table(self, table_name: Optional[str] = None) -> Table:
        """Table by exposed name; the master table if omitted."""
        return self.store[self.get_internal_table_name(table_name or self.master_table_name)]

    def get_row(self, table_name: Optional[str] = None) -> Row:
        """First row of a table (the entity's own row for the master table)."""
        table = self.get_table(table_name)
        rows = table.rows
        if not rows:
            raise RowDeletedError(f"Table '{table.name}' has no rows.", source=table.name)
        return rows[0]

    @property
    def pk(self) -> Any:
        return self.get_row()[self.get_internal_field_name(self.primary_key_field)]

    @property
    def id(self) -> str:
        return str(self.pk)

    @property
    def entity_state(self) -> RowState:
        return self.get_row().state

    # Field and table maps
    def set_table_map(self, exposed_table_name: str, internal_table_name: str) -> None:
        """Map an exposed table name to the name used in the store."""
        self._table_maps[exposed_table_name] = internal_table_name

    def set_field_map(self, exposed_field_name: str, internal_field_name: str,
                      exposed_table_name: Optional[str] = None) -> None:
        """Map an exposed field name to its column name (master table if no table is given)."""
        table_name = self.get_internal_table_name(exposed_table_name or self.master_table_name)
        self._field_maps[f"{table_name}:{exposed_field_name}"] = internal_field_name

    def get_internal_table_name(self, exposed_table_name: str) -> str:
        return self._table_maps.get(exposed_table_name, exposed_table_name)

    def get_internal_field_name(self, exposed_field_name: str, exposed_table_name: Optional[str] = None) -> str:
        table_name = self.get_internal_table_name(exposed_table_name or self.master_table_name)
        return self._field_maps.get(f"{table_name}:{exposed_field_name}", exposed_field_name)

    # Field access
    def read_field(self, field_name: str, field_type: Optional[type] = None,
                   table_name: Optional[str] = None, ignore_nulls: bool = False) -> Any:
        """
        Read a field of the first row of a table.

        Args:
            field_name: Exposed field name
            field_type: Type to coerce the value to
            table_name: Exposed table name; the master table if omitted
            ignore_nulls: Return NULL for null values instead of the type's default
        """
        row = self.get_row(table_name)
        return self.field_accessor.read(row, self.get_internal_field_name(field_name, table_name),
                                        field_type, ignore_nulls)

    def write_field(self, field_name: str, value: Any, table_name: Optional[str] = None,
                    force_dirty: bool = False) -> bool:
        """
        Write a field of the first row of a table.

        Returns:
            True if the row was marked dirty
        """
        row = self.get_row(table_name)
        internal_name = self.get_internal_field_name(field_name, table_name)
        changed = self.field_accessor.write(row, internal_name, value, force_dirty)
        if changed:
            self.data_updated(internal_name, row.table.name)
        return changed

    def is_field_null(self, field_name: str, table_name: Optional[str] = None) -> bool:
        row = self.get_row(table_name)
        return row.is_null(self.get_internal_field_name(field_name, table_name))

    def has_field(self, field_name: str, table_name: Optional[str] = None) -> bool:
        """True if the table exists and contains the field's column."""
        internal_table = self.get_internal_table_name(table_name or self.master_table_name)
        if internal_table not in self.store:
            return False
        return self.store[internal_table].has_column(self.get_internal_field_name(field_name, table_name))

    def check_column(self, field_name: str, table_name: Optional[str] = None, value: Any = None,
                     data_type: Optional[type] = None) -> bool:
        """Make sure a column exists, adding it if necessary."""
        table = self.get_table(table_name)
        self.field_accessor.check_column(table, self.get_internal_field_name(field_name, table_name), value, data_type)
        return True

    def check_rows(self, table_name: Optional[str] = None, primary_key_field: Optional[str] = None,
                   minimum_row_count: int = 1, auto_add_rows: bool = True) -> bool:
        """
        Check that a table has a minimum number of live rows.

        Args:
            table_name: Exposed table name; the master table if omitted
            primary_key_field: Primary key column of that table
            minimum_row_count: Required number of rows
            auto_add_rows: Add rows with generated keys when there are too few

        Returns:
            True if the table has (or now has) enough rows
        """
        table_name = table_name or self.master_table_name
        internal_table = self.get_internal_table_name(table_name)
        if internal_table not in self.store:
            return False
        table = self.store[internal_table]
        if len(table.live_rows()) >= minimum_row_count:
            return True
        if not auto_add_rows:
            return False

        pk_field = self.get_internal_field_name(primary_key_field or self.primary_key_field, table_name)
        table.add_column(pk_field, key_column_type(self.primary_key_type))
        while len(table.live_rows()) < minimum_row_count:
            row = table.new_row()
            row[pk_field] = new_key(table, pk_field, self.primary_key_type)
            self.populate_new_record(row, table.name)
            table.add_row(row)
        return True

    def clear_rows(self, table_name: str) -> bool:
        """Remove all rows of a table; False if the table does not exist."""
        internal_table = self.get_internal_table_name(table_name)
        if internal_table not in self.store:
            return False
        self.store[internal_table].clear()
        return True

    # Change tracking
    @property
    def is_dirty(self) -> bool:
        return not self._is_dirty_override and self.store.has_changes()

    def ignore_is_dirty(self) -> None:
        """Report the entity as clean until the next change."""
        self._is_dirty_override = True

    def accept_changes(self) -> None:
        self.store.accept_changes()
        self._is_dirty_override = False

    def reject_changes(self) -> None:
        self.store.reject_changes()
        self._is_dirty_override = False

    def data_updated(self, field_name: str, table_name: str) -> None:
        """Publish DATA_UPDATED for a changed field or table."""
        self._is_dirty_override = False
        self.events.publish(EntityEvent(EventType.DATA_UPDATED, source=self,
                                        field_name=field_name, table_name=table_name))

    def get_raw_data(self) -> str:
        """Structured JSON dump of all tables and rows."""
        return self.store.dump()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.master_table_name!r}, state={self.load_state.value})"


__all__ = ["BusinessEntity", "LoadState"]
