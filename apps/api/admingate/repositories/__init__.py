"""
Repositories.
"""

from .base import Active, BaseRepository, Deleted, store_errors
from .domain import DomainRepository
from .menu import MenuActionRepository, MenuRepository
from .policy import PolicyStore
from .user import UserRepository

__all__ = [
    "Active",
    "BaseRepository",
    "Deleted",
    "store_errors",
    "DomainRepository",
    "MenuActionRepository",
    "MenuRepository",
    "PolicyStore",
    "UserRepository",
]
