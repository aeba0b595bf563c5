"""
Enforcement gate.

The single point where a (subject, resource path, method) triple is
turned into allow or deny. Fails closed: anything short of an explicit
allow raises.
"""

from typing import Callable

import casbin
import structlog

from admingate.core.errors import EnforcementFailure, NoPermission

logger = structlog.get_logger()

# Decides from the request scope whether enforcement applies
SkipPredicate = Callable[[str, str], bool]


def skip_path_prefixes(*prefixes: str) -> SkipPredicate:
    """Skip requests whose path starts with any of ``prefixes``."""

    def predicate(path: str, method: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in prefixes)

    return predicate


def skip_methods(*methods: str) -> SkipPredicate:
    """Skip requests using any of ``methods`` (e.g. OPTIONS preflight)."""
    allowed = {m.upper() for m in methods}

    def predicate(path: str, method: str) -> bool:
        return method.upper() in allowed

    return predicate


class EnforcementGate:
    """
    Authorize requests against the shared enforcer.

    The gate does not own the enforcer; the container does.

    Usage:
        gate = EnforcementGate(enforcer)
        gate.authorize(42, "/api/v1/domains", "GET")  # True or raises
    """

    def __init__(self, enforcer: casbin.Enforcer | None, enabled: bool = True):
        self.enforcer = enforcer
        self.enabled = enabled

    def authorize(self, subject_id: int | str | None, resource_path: str, method: str) -> bool:
        """
        Raises:
            NoPermission: the policy denies the request
            EnforcementFailure: the engine could not decide
        """
        if not self.enabled:
            return True

        if subject_id is None or subject_id == "" or not resource_path or not method:
            raise EnforcementFailure("subject, resource and action are required")
        if self.enforcer is None:
            raise EnforcementFailure("no policy enforcer configured")

        subject = str(subject_id)
        try:
            allowed = self.enforcer.enforce(subject, resource_path, method)
        except Exception as exc:
            logger.error(
                "enforcement_error",
                subject=subject,
                path=resource_path,
                method=method,
                error=str(exc),
            )
            raise EnforcementFailure(str(exc)) from exc

        if not allowed:
            logger.info("access_denied", subject=subject, path=resource_path, method=method)
            raise NoPermission(f"{method} {resource_path} is not permitted")
        return True
