"""
Database models.
"""

from .base import Base, IDMixin, TimestampMixin, SoftDeleteMixin
from .domain import Domain, DomainStatus
from .menu import Menu, MenuAction, MenuStatus
from .policy import CasbinObject, CasbinRole, CasbinRule, SubjectRole
from .user import User

__all__ = [
    "Base",
    "IDMixin",
    "TimestampMixin",
    "SoftDeleteMixin",
    "Domain",
    "DomainStatus",
    "Menu",
    "MenuAction",
    "MenuStatus",
    "CasbinObject",
    "CasbinRole",
    "CasbinRule",
    "SubjectRole",
    "User",
]
