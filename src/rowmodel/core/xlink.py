"""
RowModel Cross-Link Collections

Many-to-many sub-item collections. Each item wraps a row of a link table
that points at the parent entity (foreign key) and at a row of a target
table (target foreign key). Item fields can be addressed on either row:

    for item in name.categories:
        label = item.read_field("name", mode=XLinkAccessMode.TARGET_TABLE)

The target row is resolved from the link row's target foreign key on
every access, through the target table's key index.
"""

import logging
import weakref
from enum import Enum
from typing import Any, Optional

from .collection import CollectionSettings, SubItemCollection, SubItemCollectionItem
from .exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    OperationNotSupportedError,
    TargetNotFoundError,
)
from .keys import key_column_type, new_key
from .store import Row, Table

logger = logging.getLogger(__name__)


class XLinkAccessMode(Enum):
    """Which row of a cross-link item a field operation addresses"""
    LINK_TABLE = "link_table"
    TARGET_TABLE = "target_table"


class XLinkRemoveMode(Enum):
    """What removing a cross-link item deletes"""
    LINK_RECORD_ONLY = "link_record_only"
    LINK_AND_TARGET_RECORD = "link_and_target_record"


class XLinkSettings(CollectionSettings):
    """Collection settings plus the target side of the link"""
    target_table_name: str = ""
    target_foreign_key_field: str = ""
    target_primary_key_field: str = ""
    target_text_field: str = ""
    auto_add_target: bool = False


def _is_empty_key(key: Any) -> bool:
    return key is None or (isinstance(key, str) and not key.strip())


class XLinkItem(SubItemCollectionItem):
    """
    One link row of a cross-link collection.

    ``default_remove_mode`` applies when ``remove()`` is called without a
    mode; the configured default is used when it is left as None.
    """

    default_remove_mode: Optional[XLinkRemoveMode] = None

    def __init__(self, collection: "XLinkCollection", row: Row, target_row: Optional[Row] = None):
        super().__init__(collection, row)
        if self.default_remove_mode is None:
            from ..config import get_config
            self.default_remove_mode = get_config().entity.default_remove_mode
        self._target_ref = weakref.ref(target_row) if target_row is not None else None

    # Target resolution
    @property
    def target_row(self) -> Row:
        """
        The target row this item links to.

        Raises:
            TargetNotFoundError: The link does not resolve to a live target row
        """
        foreign_key_field = self.collection.settings.target_foreign_key_field
        if foreign_key_field:
            return self.collection.resolve_target(self._row[foreign_key_field])

        target = self._target_ref() if self._target_ref is not None else None
        if target is None or not target.is_live:
            raise TargetNotFoundError("No target row attached to this item.")
        return target

    def set_target_row(self, target_row: Row) -> None:
        """Attach a target row by hand (collections without a target foreign key)."""
        self._target_ref = weakref.ref(target_row)
        self.collection.attach_target(self._row, target_row)

    def get_target_foreign_key(self) -> Any:
        foreign_key_field = self._require_foreign_key_field()
        return self.read_field(foreign_key_field)

    def set_target_foreign_key(self, key: Any) -> None:
        """
        Point the link at the target row whose primary key equals ``key``.

        Raises:
            InvalidArgumentError: ``key`` is None or empty
            TargetNotFoundError: No target row has that key, or the link row refused it;
                the link row is left unchanged
        """
        if not self.try_set_target_foreign_key(key):
            raise TargetNotFoundError(f"No target item: '{key}'", key=key)

    def try_set_target_foreign_key(self, key: Any) -> bool:
        """
        Like ``set_target_foreign_key`` but returns False when no target row
        has ``key``, or when the link row's key column refuses the value.
        """
        if _is_empty_key(key):
            raise InvalidArgumentError("Target foreign key cannot be None or empty.")
        foreign_key_field = self._require_foreign_key_field()

        if self.collection.find_target(key) is None:
            logger.debug(f"No target row with key {key!r} in '{self.collection.target_table.name}'")
            return False

        self._write_row(self._row, foreign_key_field, key, False)
        stored = self._row[foreign_key_field]
        if type(stored) is not type(key) or stored != key:
            logger.debug(f"Column '{foreign_key_field}' refused target key {key!r}")
            return False
        return True

    def _require_foreign_key_field(self) -> str:
        foreign_key_field = self.collection.settings.target_foreign_key_field
        if not foreign_key_field:
            raise ConfigurationError(f"{type(self.collection).__name__} has no target foreign key field configured.")
        return foreign_key_field

    @property
    def text(self) -> str:
        """Display text of the target row ("" when no text field is configured)."""
        text_field = self.collection.settings.target_text_field
        if not text_field:
            return ""
        return self.read_field(text_field, str, mode=XLinkAccessMode.TARGET_TABLE)

    # Field access in either table
    def _mode_row(self, mode: XLinkAccessMode) -> Row:
        return self._row if mode == XLinkAccessMode.LINK_TABLE else self.target_row

    def read_field(self, field_name: str, field_type: Optional[type] = None, ignore_nulls: bool = False,
                   mode: XLinkAccessMode = XLinkAccessMode.LINK_TABLE) -> Any:
        row = self._mode_row(mode)
        return self.parent_entity.field_accessor.read(row, self._internal_name(field_name, row.table),
                                                      field_type, ignore_nulls)

    def write_field(self, field_name: str, value: Any, force_dirty: bool = False,
                    mode: XLinkAccessMode = XLinkAccessMode.LINK_TABLE) -> bool:
        return self._write_row(self._mode_row(mode), field_name, value, force_dirty)

    def is_field_null(self, field_name: str, mode: XLinkAccessMode = XLinkAccessMode.LINK_TABLE) -> bool:
        row = self._mode_row(mode)
        return row.is_null(self._internal_name(field_name, row.table))

    # Removal
    def can_remove_target_record(self) -> bool:
        """Override to block cascade removal (e.g. when other items link to the target)."""
        return True

    def remove(self, mode: Optional[XLinkRemoveMode] = None) -> bool:
        """
        Remove the link, and with LINK_AND_TARGET_RECORD the target row as well.

        Returns:
            False if cascade removal was blocked by ``can_remove_target_record``
        """
        mode = mode or self.default_remove_mode
        link_row = self._row

        if mode == XLinkRemoveMode.LINK_AND_TARGET_RECORD:
            if not self.can_remove_target_record():
                logger.debug(f"Removal of target record blocked for link in '{link_row.table.name}'")
                return False
            self.target_row.delete()

        link_row.delete()
        logger.debug(f"Removed link in '{link_row.table.name}' ({mode.value})")

        self.parent_entity.data_updated("", link_row.table.name)
        self.collection.data_updated("", link_row)
        return True

    def __str__(self) -> str:
        return self.text


class XLinkCollection(SubItemCollection):
    """
    Cross-link collection: parent -> link table -> target table.

    Example settings:

        settings = XLinkSettings(
            table_name="NameCategoryAssignment", primary_key_field="pk_assignment",
            foreign_key_field="fk_name", target_table_name="NameCategories",
            target_foreign_key_field="fk_category", target_primary_key_field="pk_category",
            target_text_field="name")
    """

    settings: XLinkSettings = XLinkSettings()
    item_class = XLinkItem

    _pending_target: Optional[Row] = None

    def __init__(self, parent_entity, settings: Optional[XLinkSettings] = None):
        # link row -> weak reference to a manually attached target row
        self._manual_targets: "weakref.WeakKeyDictionary[Row, weakref.ref]" = weakref.WeakKeyDictionary()
        super().__init__(parent_entity, settings)

    def _apply_defaults(self) -> None:
        super()._apply_defaults()
        if not self.settings.target_table_name:
            raise ConfigurationError(f"{type(self).__name__} has no target table configured.")

    def reset_table(self) -> None:
        super().reset_table()
        settings = self.settings
        if settings.target_foreign_key_field:
            self._table.add_column(settings.target_foreign_key_field, key_column_type(self.primary_key_type))

        columns = []
        if settings.target_primary_key_field:
            columns.append((settings.target_primary_key_field, key_column_type(self.primary_key_type)))
        if settings.target_text_field:
            columns.append((settings.target_text_field, str))
        target_name = self.parent_entity.get_internal_table_name(settings.target_table_name)
        self._target_table = self.parent_entity.store.ensure_table(target_name, columns)

    @property
    def target_table(self) -> Table:
        return self._target_table

    def _require_target_primary_key(self) -> str:
        if not self.settings.target_primary_key_field:
            raise ConfigurationError(f"{type(self).__name__} has no target primary key field configured.")
        return self.settings.target_primary_key_field

    def find_target(self, key: Any) -> Optional[Row]:
        """Live target row whose primary key equals ``key`` (first in table order)."""
        return self._target_table.find(self._require_target_primary_key(), key)

    def resolve_target(self, key: Any) -> Row:
        """Like ``find_target`` but raises TargetNotFoundError when there is no match."""
        target = self.find_target(key)
        if target is None:
            raise TargetNotFoundError(f"No target item: '{key}'", key=key)
        return target

    def add(self, target_key: Any = None) -> XLinkItem:
        """
        Link the parent entity to an existing target row.

        Without a key a new target row is created, which requires
        ``auto_add_target``.
        """
        if target_key is None:
            if not self.settings.auto_add_target:
                raise OperationNotSupportedError(
                    f"{type(self).__name__} cannot add items without a target (auto_add_target is off).")
            return self._link(self.new_target_row())

        if _is_empty_key(target_key):
            raise InvalidArgumentError("Target key cannot be empty.")
        return self._link(self.resolve_target(target_key))

    def add_by_text(self, text: str) -> XLinkItem:
        """
        Link the parent entity to the target row with the given text.

        With ``auto_add_target`` a new target row carrying the text is
        created instead of searching for an existing one.
        """
        if text is None:
            raise InvalidArgumentError("Target text cannot be None.")
        if self.settings.auto_add_target:
            return self._link(self.new_target_row(text))

        text_field = self.settings.target_text_field
        if not text_field:
            raise ConfigurationError(f"{type(self).__name__} has no target text field configured.")
        for row in self._target_table.live_rows():
            value = row[text_field]
            if value is not None and str(value).strip() == text:
                return self._link(row)
        raise TargetNotFoundError(f"No target item with text '{text}'")

    def new_target_row(self, text: Optional[str] = None) -> Row:
        """Add a row with a generated key to the target table."""
        pk_field = self._require_target_primary_key()
        table = self._target_table
        row = table.new_row()
        row[pk_field] = new_key(table, pk_field, self.primary_key_type)
        if text is not None and self.settings.target_text_field:
            row[self.settings.target_text_field] = text
        self.parent_entity.populate_new_record(row, table.name)
        table.add_row(row)
        self.parent_entity.data_updated("", table.name)
        return row

    def attach_target(self, link_row: Row, target_row: Row) -> None:
        self._manual_targets[link_row] = weakref.ref(target_row)

    def _make_item(self, row: Row) -> XLinkItem:
        target_ref = self._manual_targets.get(row)
        return self.item_class(self, row, target_ref() if target_ref is not None else None)

    def _link(self, target_row: Row) -> XLinkItem:
        self._pending_target = target_row
        try:
            item = self.add_new_row()
        finally:
            self._pending_target = None
        return item

    def add_new_row_information(self, row: Row) -> None:
        super().add_new_row_information(row)
        target = self._pending_target
        foreign_key_field = self.settings.target_foreign_key_field
        if target is None:
            return
        if foreign_key_field:
            row[foreign_key_field] = target[self._require_target_primary_key()]
        else:
            self.attach_target(row, target)

    def contains_text(self, text: str, ignore_case: bool = False) -> bool:
        if ignore_case:
            text = text.casefold()
            return any(item.text.casefold() == text for item in self)
        return any(item.text == text for item in self)

    def remove(self, index: int, mode: Optional[XLinkRemoveMode] = None) -> bool:
        return self[index].remove(mode)


__all__ = [
    "XLinkAccessMode",
    "XLinkRemoveMode",
    "XLinkSettings",
    "XLinkItem",
    "XLinkCollection",
]
