"""
RowModel - Business Entities over an In-Memory Row Store

Typed business entities backed by tables of rows, with dirty tracking,
sub-item and many-to-many cross-link collections, and pluggable
persistence backends.
"""

from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .persistence import PersistenceBackend, MemoryRepo, get_memory_persistence
from .config import (
    ApplicationConfig,
    EntityConfig,
    Environment,
    LoggingConfig,
    configure_logging,
    get_config,
    set_config,
)

__version__ = "0.1.0"

__all__ = [
    *_core_all,

    # Persistence
    'PersistenceBackend',
    'MemoryRepo',
    'get_memory_persistence',

    # Configuration
    'ApplicationConfig',
    'EntityConfig',
    'Environment',
    'LoggingConfig',
    'configure_logging',
    'get_config',
    'set_config',
]
