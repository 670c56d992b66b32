"""
RowModel Persistence Layer - Base Classes

This module provides the abstract interface entities are saved, removed
and loaded through.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Type, Union

if TYPE_CHECKING:
    from ..core.entity import BusinessEntity
    from ..core.store import RowStore


EntityTypeRef = Union[str, Type["BusinessEntity"]]


def entity_type_name(entity_type: EntityTypeRef) -> str:
    """Storage name of an entity class (or an already resolved name)."""
    return entity_type if isinstance(entity_type, str) else entity_type.__name__


class PersistenceBackend(ABC):
    """
    Abstract base class for entity persistence backends.

    Backends store the full row store of an entity, keyed by the entity
    type and its primary key. Accepting the entity's pending changes after
    a successful save is the caller's job.
    """

    @abstractmethod
    def save(self, entity: 'BusinessEntity') -> bool:
        """
        Save the entity's row store.

        Args:
            entity: Entity instance to persist

        Returns:
            True if save was successful, False otherwise
        """
        pass

    @abstractmethod
    def remove(self, entity: 'BusinessEntity') -> bool:
        """
        Remove the stored entity.

        Args:
            entity: Entity instance to remove

        Returns:
            True if a stored entity was removed, False otherwise
        """
        pass

    @abstractmethod
    def load(self, entity_type: EntityTypeRef, entity_id: Any) -> Optional['RowStore']:
        """
        Load a stored row store.

        Args:
            entity_type: Entity class (or its name)
            entity_id: Primary key of the entity

        Returns:
            An independent copy of the stored row store, None if not found
        """
        pass

    @abstractmethod
    def exists(self, entity_type: EntityTypeRef, entity_id: Any) -> bool:
        """
        Check if an entity is stored.

        Args:
            entity_type: Entity class (or its name)
            entity_id: Primary key of the entity

        Returns:
            True if entity exists, False otherwise
        """
        pass
