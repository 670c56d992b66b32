"""
Core mixins for entity functionality.
"""

from .persistence_mixin import PersistenceMixin

__all__ = ["PersistenceMixin"]
