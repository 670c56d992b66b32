"""
RowModel Keys

Primary key kinds and new-key generation for entity and sub-item rows.
"""

import uuid
from enum import Enum
from typing import Any

from .exceptions import UnsupportedKeyTypeError
from .store import Table


class KeyType(Enum):
    """How primary keys of a table are typed and generated"""
    GUID = "guid"
    INTEGER = "integer"
    INTEGER_AUTO_INCREMENT = "integer_auto_increment"
    STRING = "string"


def key_column_type(key_type: KeyType) -> type:
    """Python type stored in a primary key column of the given kind."""
    if key_type == KeyType.GUID:
        return uuid.UUID
    if key_type in (KeyType.INTEGER, KeyType.INTEGER_AUTO_INCREMENT):
        return int
    if key_type == KeyType.STRING:
        return str
    raise UnsupportedKeyTypeError(f"Key type {key_type!r} not supported.")


def new_key(table: Table, field_name: str, key_type: KeyType) -> Any:
    """
    Generate a primary key for a new row of ``table``.

    Integer keys continue from the highest key already present in the
    table (deleted rows included, so keys are never reused before the
    changes are accepted).
    """
    if key_type == KeyType.GUID:
        return uuid.uuid4()
    if key_type == KeyType.STRING:
        return uuid.uuid4().hex
    if key_type in (KeyType.INTEGER, KeyType.INTEGER_AUTO_INCREMENT):
        highest = 0
        if table.has_column(field_name):
            for row in table.rows:
                value = row.to_dict().get(field_name)
                if isinstance(value, int) and not isinstance(value, bool) and value > highest:
                    highest = value
        return highest + 1
    raise UnsupportedKeyTypeError(f"Key type {key_type!r} not supported.")


def check_key(key: Any, key_type: KeyType) -> Any:
    """Validate (and normalize) an externally supplied key for ``key_type``."""
    if key_type == KeyType.GUID:
        if isinstance(key, uuid.UUID):
            return key
        try:
            return uuid.UUID(str(key))
        except ValueError:
            raise UnsupportedKeyTypeError(f"Key {key!r} is not a GUID.") from None
    if key_type in (KeyType.INTEGER, KeyType.INTEGER_AUTO_INCREMENT):
        if isinstance(key, bool) or not isinstance(key, int):
            raise UnsupportedKeyTypeError(f"Key {key!r} is not an integer.")
        return key
    if key_type == KeyType.STRING:
        if not isinstance(key, str):
            raise UnsupportedKeyTypeError(f"Key {key!r} is not a string.")
        return key
    raise UnsupportedKeyTypeError(f"Key type {key_type!r} not supported.")


__all__ = ["KeyType", "key_column_type", "new_key", "check_key"]
