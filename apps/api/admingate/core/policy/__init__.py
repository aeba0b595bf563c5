"""
Policy bootstrap, storage adapter and enforcement.
"""

from .adapter import PolicyStoreAdapter
from .gate import EnforcementGate, SkipPredicate, skip_methods, skip_path_prefixes
from .loader import (
    CreatorObject,
    CreatorPolicy,
    CreatorRole,
    DefaultPolicy,
    load_default_policy,
)
from .model import DEFAULT_MODEL, build_enforcer, build_model

__all__ = [
    "PolicyStoreAdapter",
    "EnforcementGate",
    "SkipPredicate",
    "skip_methods",
    "skip_path_prefixes",
    "CreatorObject",
    "CreatorPolicy",
    "CreatorRole",
    "DefaultPolicy",
    "load_default_policy",
    "DEFAULT_MODEL",
    "build_enforcer",
    "build_model",
]
