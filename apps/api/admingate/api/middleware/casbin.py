"""
Policy enforcement middleware.

Order per request: skip predicates, subject extraction, gate. A skipped
request never reaches the extractor or the policy engine.
"""

from typing import Callable, Sequence

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from admingate.api.errors import error_response
from admingate.core.config import AuthSettings
from admingate.core.errors import AdminGateError, Unauthenticated
from admingate.core.policy.gate import EnforcementGate, SkipPredicate
from admingate.services.auth import decode_subject

# Returns the authenticated principal id, or None
SubjectExtractor = Callable[[Request], int | None]


def bearer_subject(cfg: AuthSettings) -> SubjectExtractor:
    """Read the principal id from an ``Authorization: Bearer`` JWT."""

    def extract(request: Request) -> int | None:
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return decode_subject(token.strip(), cfg)

    return extract


class CasbinMiddleware(BaseHTTPMiddleware):
    """
    Authorize every non-skipped request through the enforcement gate.

    Usage:
        app.add_middleware(
            CasbinMiddleware,
            gate=container.gate,
            subject_extractor=bearer_subject(settings.auth),
            skippers=[skip_path_prefixes("/health")],
        )
    """

    def __init__(
        self,
        app: ASGIApp,
        gate: EnforcementGate,
        subject_extractor: SubjectExtractor,
        skippers: Sequence[SkipPredicate] = (),
    ):
        super().__init__(app)
        self.gate = gate
        self.subject_extractor = subject_extractor
        self.skippers = list(skippers)

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        method = request.method

        if any(skip(path, method) for skip in self.skippers):
            return await call_next(request)

        subject_id = self.subject_extractor(request)
        if subject_id is None:
            return error_response(Unauthenticated("missing or invalid bearer token"))

        try:
            self.gate.authorize(subject_id, path, method)
        except AdminGateError as exc:
            return error_response(exc)

        request.state.subject_id = subject_id
        structlog.contextvars.bind_contextvars(subject=str(subject_id))
        return await call_next(request)
