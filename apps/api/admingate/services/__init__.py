"""
Business logic services.
"""

from .auth import AuthService
from .menu import MenuService
from .policy import PolicyService

__all__ = ["AuthService", "MenuService", "PolicyService"]
