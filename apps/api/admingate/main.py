"""
FastAPI application factory and process entry point.
"""

import asyncio
import sys

from fastapi import FastAPI

from admingate.api.errors import register_exception_handlers
from admingate.api.middleware.casbin import CasbinMiddleware, bearer_subject
from admingate.api.middleware.logging import LoggingMiddleware
from admingate.api.routes import router as api_router
from admingate.core.config import get_settings
from admingate.core.container import Container
from admingate.core.policy.gate import skip_methods, skip_path_prefixes


def create_app(container: Container) -> FastAPI:
    """Create the application around an already built container."""
    settings = container.settings
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )
    app.state.container = container

    # Middleware (order matters - last added is outermost)
    if settings.casbin.enable:
        app.add_middleware(
            CasbinMiddleware,
            gate=container.gate,
            subject_extractor=bearer_subject(settings.auth),
            skippers=[
                skip_methods("OPTIONS"),
                skip_path_prefixes(*settings.casbin.skip_paths),
            ],
        )
    app.add_middleware(LoggingMiddleware)

    app.include_router(api_router, prefix="/api/v1")
    register_exception_handlers(app, debug=settings.debug)

    @app.get("/health")
    async def health_check():
        """Quick health check endpoint (for load balancers)."""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app


def main() -> int:
    from admingate.core.lifecycle import Lifecycle

    return asyncio.run(Lifecycle(get_settings()).run())


if __name__ == "__main__":
    sys.exit(main())
