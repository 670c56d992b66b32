"""
RowModel Exceptions

Error taxonomy for the row store, field access and sub-item collections.
Every exception carries an ErrorKind so callers can branch on the kind
instead of the concrete class.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Kinds of failures surfaced by the core"""
    COLUMN_NOT_FOUND = "column_not_found"
    TARGET_NOT_FOUND = "target_not_found"
    INVALID_ARGUMENT = "invalid_argument"
    GUARD_REJECTED = "guard_rejected"
    TABLE_NOT_FOUND = "table_not_found"
    ROW_DELETED = "row_deleted"
    ENTITY_DELETED = "entity_deleted"
    INDEX_OUT_OF_BOUNDS = "index_out_of_bounds"
    UNSUPPORTED_KEY_TYPE = "unsupported_key_type"
    OPERATION_NOT_SUPPORTED = "operation_not_supported"
    CONFIGURATION = "configuration"


class RowModelError(Exception):
    """Base exception for row model operations"""
    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT
    default_message = "Row model operation failed."

    def __init__(self, message: Optional[str] = None, source: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.source = source

    def __str__(self) -> str:
        # KeyError subclasses would otherwise repr() the message
        return self.args[0] if self.args else self.default_message


class ColumnNotFoundError(RowModelError, KeyError):
    """Raised when a field is read from a column that does not exist"""
    kind = ErrorKind.COLUMN_NOT_FOUND
    default_message = "Field doesn't exist."

    def __init__(self, field_name: str, table_name: str = ""):
        super().__init__(
            f"Field '{field_name}' doesn't exist in table '{table_name}'.",
            source=f"{field_name}.{table_name}",
        )
        self.field_name = field_name
        self.table_name = table_name


class TargetNotFoundError(RowModelError):
    """Raised when a foreign key does not match any row of the target table"""
    kind = ErrorKind.TARGET_NOT_FOUND
    default_message = "Collection target not found."

    def __init__(self, message: Optional[str] = None, key: Any = None):
        super().__init__(message)
        self.key = key


class InvalidArgumentError(RowModelError, ValueError):
    """Raised when a null or empty identifier is passed where a key is required"""
    kind = ErrorKind.INVALID_ARGUMENT
    default_message = "Invalid argument."


class TableNotFoundError(RowModelError, KeyError):
    """Raised when a table is not part of the row store"""
    kind = ErrorKind.TABLE_NOT_FOUND
    default_message = "Table not found."


class RowDeletedError(RowModelError):
    """Raised when a deleted or detached row is read or written"""
    kind = ErrorKind.ROW_DELETED
    default_message = "Deleted row information cannot be accessed through the row."


class DeletedEntityError(RowModelError):
    """Raised when saving or removing an entity that has already been removed"""
    kind = ErrorKind.ENTITY_DELETED
    default_message = "Entity has been deleted."


class IndexOutOfBoundsError(RowModelError, IndexError):
    """Raised when a collection index does not address a live row"""
    kind = ErrorKind.INDEX_OUT_OF_BOUNDS
    default_message = "Index out of bounds."


class UnsupportedKeyTypeError(RowModelError):
    """Raised when a key operation does not match the configured key type"""
    kind = ErrorKind.UNSUPPORTED_KEY_TYPE
    default_message = "Key type not supported."


class OperationNotSupportedError(RowModelError):
    """Raised for collection operations an entity does not support"""
    kind = ErrorKind.OPERATION_NOT_SUPPORTED
    default_message = "Operation not supported by entity."


class ConfigurationError(RowModelError):
    """Raised when a collection or entity is missing required configuration"""
    kind = ErrorKind.CONFIGURATION
    default_message = "Invalid configuration."


__all__ = [
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
]
