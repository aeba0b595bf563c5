"""
HTTP middleware.
"""

from .casbin import CasbinMiddleware, bearer_subject
from .logging import LoggingMiddleware

__all__ = ["CasbinMiddleware", "LoggingMiddleware", "bearer_subject"]
