"""
API routes aggregation.
"""

from fastapi import APIRouter, Depends

from admingate.api.dependencies.services import require_active_subject

from .auth import router as auth_router
from .domains import router as domains_router
from .menus import router as menus_router
from .policies import router as policies_router

router = APIRouter()

# Console routes need a principal that is still active
console = [Depends(require_active_subject)]

router.include_router(auth_router, prefix="/auth", tags=["auth"])
router.include_router(domains_router, prefix="/domains", tags=["domains"], dependencies=console)
router.include_router(menus_router, prefix="/menus", tags=["menus"], dependencies=console)
router.include_router(
    policies_router,
    prefix="/policies",
    tags=["policies"],
    dependencies=console,
)
