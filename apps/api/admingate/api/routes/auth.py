"""
Authentication routes.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from admingate.api.dependencies.services import get_auth_service
from admingate.schemas.auth import LoginRequest, TokenResponse
from admingate.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login with username and password."""
    token = await auth_service.login(data.username, data.password)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    return TokenResponse(
        access_token=token,
        expires_in=auth_service.cfg.access_token_expire_minutes * 60,
    )
