"""
RowModel Property Adapter

Reflective, name-based access to the properties and declared fields of an
object, for tooling such as grids and binders. Missing names never raise:
reads give None, writes are no-ops, and absent names count as read-only.
"""

import inspect
import logging
import typing
from typing import Any, List, Optional

from .fields import Field

logger = logging.getLogger(__name__)


class PropertyAdapter:
    """
    Name-based property accessor bound to one object.

    Args:
        bound: The object whose properties are exposed
    """

    def __init__(self, bound: Any):
        self.bound = bound

    def _descriptor(self, name: str) -> Optional[Any]:
        if not name or name.startswith("_"):
            return None
        try:
            attribute = inspect.getattr_static(type(self.bound), name)
        except AttributeError:
            return None
        if isinstance(attribute, (property, Field)):
            return attribute
        return None

    def property_names(self) -> List[str]:
        """Names of all public properties and declared fields, sorted."""
        return sorted(name for name in dir(type(self.bound)) if self._descriptor(name) is not None)

    def has_property(self, name: str) -> bool:
        return self._descriptor(name) is not None

    def get(self, name: str) -> Any:
        """Value of the property, None if there is no such property."""
        if self._descriptor(name) is None:
            return None
        return getattr(self.bound, name)

    def set(self, name: str, value: Any) -> bool:
        """Assign the property; False (and nothing happens) if it is absent or read-only."""
        if self.is_read_only(name):
            logger.debug(f"Ignoring assignment to missing or read-only property '{name}'")
            return False
        setattr(self.bound, name, value)
        return True

    def is_read_only(self, name: str) -> bool:
        descriptor = self._descriptor(name)
        if descriptor is None:
            return True
        if isinstance(descriptor, Field):
            return descriptor.read_only
        return descriptor.fset is None

    def declared_type(self, name: str) -> type:
        """Declared type of the property; ``object`` if unknown or absent."""
        descriptor = self._descriptor(name)
        if descriptor is None:
            return object
        if isinstance(descriptor, Field):
            return descriptor.field_type
        if descriptor.fget is None:
            return object
        try:
            hints = typing.get_type_hints(descriptor.fget)
        except (NameError, TypeError):
            return object
        declared = hints.get("return", object)
        return declared if isinstance(declared, type) else object


__all__ = ["PropertyAdapter"]
