"""
PersistenceMixin: Save, remove and load operations for business entities.

The mixin relies on the entity for its row store, load state and event
channel, and on a PersistenceBackend for storage.
"""

import logging
from typing import Any, Optional, TYPE_CHECKING

from ..events import EntityEvent, EventType
from ..exceptions import DeletedEntityError

if TYPE_CHECKING:
    from ...persistence import PersistenceBackend

logger = logging.getLogger(__name__)


class PersistenceMixin:
    """
    Persistence operations mixin.

    ``save`` and ``remove`` publish cancelable BEFORE_SAVE / BEFORE_REMOVE
    events and, on success, SAVED / REMOVED.
    """

    _backend: Optional['PersistenceBackend'] = None

    @property
    def persistence_backend(self) -> 'PersistenceBackend':
        """Backend this entity saves to (the shared memory repo by default)."""
        if self._backend is None:
            from ...persistence import get_memory_persistence
            return get_memory_persistence()
        return self._backend

    def save(self) -> bool:
        """Save the entity; pending changes are accepted after a successful save."""
        from ..entity import LoadState

        if self.load_state == LoadState.DELETED:
            raise DeletedEntityError("Cannot save deleted entities.", source=type(self).__name__)

        event = self.events.publish(EntityEvent(EventType.BEFORE_SAVE, source=self))
        if event.cancel:
            logger.debug(f"Save of {type(self).__name__} '{self.id}' canceled")
            return False

        saved = self.persistence_backend.save(self)
        if saved:
            self.accept_changes()
            self.events.publish(EntityEvent(EventType.SAVED, source=self))
        return saved

    def remove(self) -> bool:
        """Remove the entity from the backend; the entity is unusable afterwards."""
        from ..entity import LoadState

        if self.load_state == LoadState.DELETED:
            raise DeletedEntityError("Cannot delete entities that have already been deleted.",
                                     source=type(self).__name__)

        event = self.events.publish(EntityEvent(EventType.BEFORE_REMOVE, source=self))
        if event.cancel:
            logger.debug(f"Removal of {type(self).__name__} '{self.id}' canceled")
            return False

        removed = self.persistence_backend.remove(self)
        if removed:
            self.load_state = LoadState.DELETED
            self.events.publish(EntityEvent(EventType.REMOVED, source=self))
        return removed

    def delete(self) -> bool:
        """Alias of ``remove()``."""
        return self.remove()

    def exists(self) -> bool:
        """Check if the entity is stored in its backend."""
        return self.persistence_backend.exists(type(self), self.id)

    @classmethod
    def load(cls, entity_id: Any, backend: Optional['PersistenceBackend'] = None):
        """
        Load a stored entity.

        Args:
            entity_id: Primary key of the entity
            backend: Backend to load from; the shared memory repo if omitted

        Returns:
            Entity instance if found, None otherwise
        """
        if backend is None:
            from ...persistence import get_memory_persistence
            backend = get_memory_persistence()

        store = backend.load(cls, entity_id)
        if store is None:
            logger.debug(f"{cls.__name__} '{entity_id}' not found")
            return None
        return cls(store=store, backend=backend)
