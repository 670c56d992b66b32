"""
RowModel Persistence Layer - Memory Backend

In-memory entity persistence implementation for development and testing.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from .base import EntityTypeRef, PersistenceBackend, entity_type_name

if TYPE_CHECKING:
    from ..core.entity import BusinessEntity
    from ..core.store import RowStore

logger = logging.getLogger(__name__)


@dataclass
class StoredEntity:
    """A saved copy of an entity's row store"""
    entity_type: str
    entity_id: str
    store: 'RowStore'
    saved_at: datetime = field(default_factory=datetime.now)
    version: int = 1


class MemoryRepo(PersistenceBackend):
    """
    In-memory entity persistence implementation.

    Saved stores are copied, so later changes to the entity do not leak
    into the repository until it is saved again. Data is lost when the
    process ends.
    """

    def __init__(self):
        self._data: Dict[Tuple[str, str], StoredEntity] = {}

    @staticmethod
    def _key(entity_type: EntityTypeRef, entity_id: Any) -> Tuple[str, str]:
        return entity_type_name(entity_type), str(entity_id)

    def save(self, entity: 'BusinessEntity') -> bool:
        """Save a copy of the entity's store, with pending changes accepted."""
        key = self._key(type(entity), entity.id)
        snapshot = entity.store.copy()
        snapshot.accept_changes()

        previous = self._data.get(key)
        version = previous.version + 1 if previous else 1
        self._data[key] = StoredEntity(entity_type=key[0], entity_id=key[1], store=snapshot, version=version)
        logger.debug(f"Saved {key[0]} '{key[1]}' (version {version})")
        return True

    def remove(self, entity: 'BusinessEntity') -> bool:
        """Remove the stored copy of the entity."""
        key = self._key(type(entity), entity.id)
        existed = self._data.pop(key, None) is not None
        if existed:
            logger.debug(f"Removed {key[0]} '{key[1]}'")
        else:
            logger.debug(f"Nothing to remove for {key[0]} '{key[1]}'")
        return existed

    def load(self, entity_type: EntityTypeRef, entity_id: Any) -> Optional['RowStore']:
        """Load an independent copy of a stored entity's store."""
        record = self._data.get(self._key(entity_type, entity_id))
        if record is None:
            return None
        return record.store.copy()

    def exists(self, entity_type: EntityTypeRef, entity_id: Any) -> bool:
        return self._key(entity_type, entity_id) in self._data

    def version(self, entity_type: EntityTypeRef, entity_id: Any) -> int:
        """Number of times the entity has been saved (0 if not stored)."""
        record = self._data.get(self._key(entity_type, entity_id))
        return record.version if record else 0

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


_default_repo: Optional[MemoryRepo] = None


def get_memory_persistence() -> MemoryRepo:
    """Get the process-wide memory persistence instance."""
    global _default_repo
    if _default_repo is None:
        _default_repo = MemoryRepo()
    return _default_repo
