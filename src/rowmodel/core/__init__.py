"""
RowModel Core Module

Row store, field access, business entities and sub-item collections.
"""

from .exceptions import (
    ErrorKind,
    RowModelError,
    ColumnNotFoundError,
    TargetNotFoundError,
    InvalidArgumentError,
    TableNotFoundError,
    RowDeletedError,
    DeletedEntityError,
    IndexOutOfBoundsError,
    UnsupportedKeyTypeError,
    OperationNotSupportedError,
    ConfigurationError,
)
from .store import NULL, Column, Row, RowState, RowStore, Table
from .keys import KeyType
from .fields import Field, FieldAccessor, InvalidFieldBehavior, OptionalField, zero_value
from .events import EntityEvent, EventChannel, EventType
from .entity import BusinessEntity, LoadState
from .collection import CollectionSettings, SubItemCollection, SubItemCollectionItem
from .xlink import XLinkAccessMode, XLinkCollection, XLinkItem, XLinkRemoveMode, XLinkSettings
from .adapter import PropertyAdapter
from .snapshot import StoreSnapshot

__all__ = [
    # Errors
    "ErrorKind",
    "RowModelError",
    "ColumnNotFoundError",
    "TargetNotFoundError",
    "InvalidArgumentError",
    "TableNotFoundError",
    "RowDeletedError",
    "DeletedEntityError",
    "IndexOutOfBoundsError",
    "UnsupportedKeyTypeError",
    "OperationNotSupportedError",
    "ConfigurationError",

    # Store
    "NULL",
    "Column",
    "Row",
    "RowState",
    "RowStore",
    "Table",
    "StoreSnapshot",

    # Fields and keys
    "KeyType",
    "Field",
    "FieldAccessor",
    "InvalidFieldBehavior",
    "OptionalField",
    "zero_value",

    # Entities and collections
    "EntityEvent",
    "EventChannel",
    "EventType",
    "BusinessEntity",
    "LoadState",
    "CollectionSettings",
    "SubItemCollection",
    "SubItemCollectionItem",
    "XLinkAccessMode",
    "XLinkCollection",
    "XLinkItem",
    "XLinkRemoveMode",
    "XLinkSettings",
    "PropertyAdapter",
]
