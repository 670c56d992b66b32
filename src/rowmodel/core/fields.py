"""
RowModel Field Access

Typed reads and writes of row cells with null handling, value coercion,
the invalid-value policy and dirty marking. ``Field`` and ``OptionalField``
descriptors give entity classes an explicit, typed field schema.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .exceptions import RowDeletedError
from .store import NULL, Column, Row, Table

logger = logging.getLogger(__name__)


class InvalidFieldBehavior(Enum):
    """What a write does with a value that does not fit its column"""
    FIX_INVALID_VALUES = "fix"
    IGNORE_INVALID_VALUES = "ignore"
    REJECT_INVALID_VALUES = "reject"


_ZERO_VALUES = {
    bool: False,
    str: "",
    bytes: b"",
    int: 0,
    float: 0.0,
    Decimal: Decimal(0),
    uuid.UUID: uuid.UUID(int=0),
    datetime: datetime.min,
    date: date.min,
    time: time.min,
    timedelta: timedelta.min,
}


def zero_value(data_type: Optional[type]) -> Any:
    """Default value of a type, used for null cells; ``None`` for unknown types."""
    if data_type in _ZERO_VALUES:
        return _ZERO_VALUES[data_type]
    if isinstance(data_type, type) and issubclass(data_type, Enum):
        return next(iter(data_type), None)
    return None


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "1", "yes", "y"):
            return True
        if text in ("false", "0", "no", "n", ""):
            return False
        raise ValueError(f"Cannot interpret {value!r} as a boolean")
    return bool(value)


def convert(value: Any, target_type: type) -> Any:
    """
    Convert ``value`` to ``target_type``.

    Raises:
        ValueError, TypeError or ArithmeticError when the value cannot be converted
    """
    if target_type is object or target_type is None:
        return value
    if target_type is int and isinstance(value, bool):
        return int(value)
    if target_type is date and isinstance(value, datetime):
        return value.date()
    if isinstance(value, target_type):
        return value

    if target_type is Decimal:
        if isinstance(value, str):
            return Decimal(value.strip())
        return Decimal(str(value))
    if target_type is int:
        if isinstance(value, str):
            return int(value.strip())
        return int(value)
    if target_type is float:
        return float(value)
    if target_type is str:
        if isinstance(value, Enum):
            return str(value.value)
        return str(value)
    if target_type is bool:
        return _to_bool(value)
    if target_type is bytes:
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)
    if target_type is uuid.UUID:
        if isinstance(value, bytes) and len(value) == 16:
            return uuid.UUID(bytes=value)
        return uuid.UUID(str(value))
    if target_type is datetime:
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, str):
            return datetime.fromisoformat(value.strip())
        raise TypeError(f"Cannot convert {type(value).__name__} to datetime")
    if target_type is date:
        if isinstance(value, str):
            text = value.strip()
            if len(text) > 10:
                return datetime.fromisoformat(text).date()
            return date.fromisoformat(text)
        raise TypeError(f"Cannot convert {type(value).__name__} to date")
    if target_type is timedelta:
        if isinstance(value, (int, float, Decimal)):
            return timedelta(seconds=float(value))
        raise TypeError(f"Cannot convert {type(value).__name__} to timedelta")
    if issubclass(target_type, Enum):
        try:
            return target_type(value)
        except ValueError:
            if isinstance(value, str) and value in target_type.__members__:
                return target_type[value]
            raise
    return target_type(value)


def coerce(value: Any, target_type: type) -> Any:
    """Convert ``value`` to ``target_type``, falling back to the type's zero value."""
    try:
        return convert(value, target_type)
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.warning(f"Could not convert {value!r} to {target_type.__name__}: {e}")
        return zero_value(target_type)


class FieldAccessor:
    """
    Reads and writes row cells on behalf of an entity.

    Args:
        invalid_field_behavior: Policy for values that do not fit their column
    """

    def __init__(self, invalid_field_behavior: InvalidFieldBehavior = InvalidFieldBehavior.FIX_INVALID_VALUES):
        self.invalid_field_behavior = invalid_field_behavior

    def read(self, row: Row, field_name: str, field_type: Optional[type] = None,
             ignore_nulls: bool = False) -> Any:
        """
        Read a cell.

        Args:
            row: Row to read from
            field_name: Column name (must exist)
            field_type: Type to coerce the value to; the column type if omitted
            ignore_nulls: Return ``NULL`` for null cells instead of the zero value

        Returns:
            The (coerced) cell value
        """
        value = row[field_name]
        column = row.table.get_column(field_name)
        target_type = field_type or column.data_type

        if value is None:
            if ignore_nulls:
                return NULL
            return zero_value(target_type)

        if field_type is None:
            return value
        return coerce(value, field_type)

    def is_null(self, row: Row, field_name: str) -> bool:
        return row.is_null(field_name)

    def check_column(self, table: Table, field_name: str, value: Any = None,
                     data_type: Optional[type] = None) -> Column:
        """Return the named column, adding it (typed after ``value``) when absent."""
        if table.has_column(field_name):
            return table.get_column(field_name)
        if data_type is None:
            data_type = type(value) if value is not None and value is not NULL else object
        logger.debug(f"Column '{field_name}' missing in table '{table.name}', adding it as {data_type.__name__}")
        return table.add_column(field_name, data_type)

    def write(self, row: Row, field_name: str, value: Any, force_dirty: bool = False) -> bool:
        """
        Write a cell, creating the column first if it does not exist.

        Args:
            row: Row to write to
            field_name: Column name
            value: New value; ``None`` or ``NULL`` stores a null
            force_dirty: Mark the row modified even if the value is unchanged

        Returns:
            True if the row was marked dirty, False if the value was equal or rejected

        Raises:
            RowDeletedError: The row is deleted or detached; the schema is left alone
        """
        if not row.is_live:
            raise RowDeletedError(source=row.table.name)
        if value is NULL:
            value = None
        column = self.check_column(row.table, field_name, value)

        if value is not None:
            value = self._fit(column, value)
            if value is NULL:
                return False

        return row.set_value(field_name, value, force=force_dirty)

    def _fit(self, column: Column, value: Any) -> Any:
        # returns NULL when the value is rejected
        behavior = self.invalid_field_behavior

        if column.data_type is not object and not isinstance(value, column.data_type):
            try:
                value = convert(value, column.data_type)
            except (ValueError, TypeError, ArithmeticError) as e:
                if behavior == InvalidFieldBehavior.REJECT_INVALID_VALUES:
                    logger.debug(f"Rejected value {value!r} for column '{column.name}': {e}")
                    return NULL
                logger.warning(f"Storing unconverted value {value!r} in column '{column.name}': {e}")
                return value

        if isinstance(value, str) and 0 <= column.max_length < len(value):
            if behavior == InvalidFieldBehavior.FIX_INVALID_VALUES:
                logger.debug(f"Truncating value for column '{column.name}' to {column.max_length} characters")
                return value[:column.max_length]
            if behavior == InvalidFieldBehavior.REJECT_INVALID_VALUES:
                logger.debug(f"Rejected value longer than {column.max_length} characters for column '{column.name}'")
                return NULL
        return value


class Field:
    """
    Typed entity field stored in a column of the entity's store.

    On the class the descriptor itself is returned; on an instance it
    reads and writes through the entity's field accessor.

    Args:
        column: Exposed field name; defaults to the attribute name
        field_type: Type values are coerced to on read
        table_name: Table holding the column; the master table if omitted
        read_only: Reject assignment through the attribute
    """

    def __init__(self, column: Optional[str] = None, field_type: type = object,
                 table_name: Optional[str] = None, read_only: bool = False):
        self.column = column
        self.field_type = field_type
        self.table_name = table_name
        self.read_only = read_only
        self.name: Optional[str] = None

    def __set_name__(self, owner, name: str) -> None:
        self.name = name
        if self.column is None:
            self.column = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.read_field(self.column, self.field_type, table_name=self.table_name)

    def __set__(self, instance, value: Any) -> None:
        if self.read_only:
            raise AttributeError(f"Field '{self.name}' is read-only")
        instance.write_field(self.column, value, table_name=self.table_name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(column={self.column!r}, field_type={self.field_type.__name__})"


class OptionalField(Field):
    """
    Field whose column may be missing from the store.

    Reading a missing column returns ``default``; writing creates it.
    """

    def __init__(self, column: Optional[str] = None, field_type: type = object, default: Any = None,
                 table_name: Optional[str] = None, read_only: bool = False):
        super().__init__(column, field_type, table_name, read_only)
        self.default = default

    def __get__(self, instance, owner):
        if instance is None:
            return self
        if not instance.has_field(self.column, table_name=self.table_name):
            logger.debug(f"Optional field '{self.column}' not present, using default {self.default!r}")
            return self.default
        return super().__get__(instance, owner)

    def __set__(self, instance, value: Any) -> None:
        if self.read_only:
            raise AttributeError(f"Field '{self.name}' is read-only")
        if not instance.has_field(self.column, table_name=self.table_name):
            instance.check_column(self.column, table_name=self.table_name, data_type=self.field_type)
        instance.write_field(self.column, value, table_name=self.table_name)


__all__ = [
    "InvalidFieldBehavior",
    "FieldAccessor",
    "Field",
    "OptionalField",
    "zero_value",
    "convert",
    "coerce",
]
