"""
Error taxonomy.

Every error carries a stable machine code and the HTTP status the
boundary layer renders it with, so callers can tell "not allowed"
apart from "server broken".
"""


class AdminGateError(Exception):
    """Base class for all application errors."""

    code: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)
        self.message = message or self.code


# ============================================================
# POLICY BOOTSTRAP
# ============================================================

class PolicyLoadError(AdminGateError):
    """Default policy file could not be turned into seed records."""

    code = "policy_load_error"


class ReadFailure(PolicyLoadError):
    code = "read_failure"


class UnsupportedFormat(PolicyLoadError):
    code = "unsupported_format"
    status_code = 400


class DecodeFailure(PolicyLoadError):
    code = "decode_failure"
    status_code = 400


class PolicyReferenceError(AdminGateError):
    """A policy rule names an object or role that does not exist."""

    code = "policy_reference_error"
    status_code = 400


# ============================================================
# STORE
# ============================================================

class StoreFailure(AdminGateError):
    """Query or write against the relational store failed."""

    code = "store_failure"


class ConflictError(AdminGateError):
    """Natural-key uniqueness would be violated."""

    code = "conflict"
    status_code = 409


# ============================================================
# ENFORCEMENT
# ============================================================

class Unauthenticated(AdminGateError):
    code = "unauthenticated"
    status_code = 401


class NoPermission(AdminGateError):
    """Policy evaluated and denied the request."""

    code = "no_permission"
    status_code = 403


class EnforcementFailure(AdminGateError):
    """Policy engine could not render a decision."""

    code = "enforcement_failure"


# ============================================================
# LIFECYCLE
# ============================================================

class StartupAbort(AdminGateError):
    """A component failed to build during the ordered boot sequence."""

    code = "startup_abort"
