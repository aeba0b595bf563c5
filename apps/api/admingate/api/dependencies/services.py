"""
Service and repository dependencies.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.api.middleware.casbin import bearer_subject
from admingate.core.errors import Unauthenticated
from admingate.repositories.domain import DomainRepository
from admingate.repositories.menu import MenuActionRepository, MenuRepository
from admingate.repositories.user import UserRepository
from admingate.services.auth import AuthService
from admingate.services.menu import MenuService
from admingate.services.policy import PolicyService

from .database import get_container, get_db


async def get_domain_repository(db: AsyncSession = Depends(get_db)) -> DomainRepository:
    return DomainRepository(db)


async def get_menu_repository(db: AsyncSession = Depends(get_db)) -> MenuRepository:
    return MenuRepository(db)


async def get_menu_action_repository(
    db: AsyncSession = Depends(get_db),
) -> MenuActionRepository:
    return MenuActionRepository(db)


async def get_menu_service(db: AsyncSession = Depends(get_db)) -> MenuService:
    return MenuService(db)


async def get_policy_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> PolicyService:
    container = get_container(request)
    return PolicyService(db, container.reload_policy)


async def get_auth_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AuthService:
    return AuthService(db, get_container(request).settings.auth)


async def _ensure_active(db: AsyncSession, subject_id: int) -> None:
    user = await UserRepository(db).get_by_id(subject_id)
    if user is None or not user.is_active:
        raise Unauthenticated("principal is unknown or inactive")


async def require_active_subject(request: Request, db: AsyncSession = Depends(get_db)) -> None:
    """
    Reject an authorized subject whose principal was deactivated or removed
    after its token was issued.

    Only applies once the enforcement middleware has set the subject.
    """
    subject_id = getattr(request.state, "subject_id", None)
    if subject_id is not None:
        await _ensure_active(db, subject_id)


async def get_subject_id(request: Request, db: AsyncSession = Depends(get_db)) -> int:
    """
    Active principal id set by the enforcement middleware.

    Falls back to decoding the bearer token when enforcement is off.
    """
    subject_id = getattr(request.state, "subject_id", None)
    if subject_id is None:
        subject_id = bearer_subject(get_container(request).settings.auth)(request)
    if subject_id is None:
        raise Unauthenticated("missing or invalid bearer token")
    await _ensure_active(db, subject_id)
    return subject_id


CurrentSubject = Annotated[int, Depends(get_subject_id)]
