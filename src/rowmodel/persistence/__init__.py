"""
RowModel Persistence Layer

Backend contract for saving, removing and loading entities, plus an
in-memory implementation.
"""

from .base import PersistenceBackend, entity_type_name
from .memory import MemoryRepo, StoredEntity, get_memory_persistence

__all__ = [
    "PersistenceBackend",
    "MemoryRepo",
    "StoredEntity",
    "get_memory_persistence",
    "entity_type_name",
]
