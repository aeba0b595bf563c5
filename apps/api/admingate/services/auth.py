"""
Authentication service.
"""

from datetime import datetime, timedelta, timezone

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.core.config import AuthSettings, RootSettings
from admingate.models.user import User
from admingate.repositories.user import UserRepository

from .policy import PolicyService

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: int, cfg: AuthSettings) -> str:
    """Create a JWT access token whose ``sub`` is the user id."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=cfg.access_token_expire_minutes)
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, cfg.secret_key, algorithm=cfg.algorithm)


def decode_subject(token: str, cfg: AuthSettings) -> int | None:
    """Return the user id carried by a valid access token, else None."""
    try:
        payload = jwt.decode(token, cfg.secret_key, algorithms=[cfg.algorithm])
    except JWTError:
        return None
    if payload.get("type") != "access":
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None


class AuthService:
    """Login and principal bootstrap."""

    def __init__(self, db: AsyncSession, cfg: AuthSettings):
        self.db = db
        self.cfg = cfg
        self.users = UserRepository(db)

    async def authenticate(self, username: str, password: str) -> User | None:
        user = await self.users.get_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_failed", username=username)
            return None
        if not user.is_active:
            logger.info("login_inactive", username=username)
            return None
        return user

    async def login(self, username: str, password: str) -> str | None:
        """Authenticate and return an access token."""
        user = await self.authenticate(username, password)
        if user is None:
            return None
        return create_access_token(user.id, self.cfg)

    async def ensure_root(self, root: RootSettings, policy: PolicyService) -> User | None:
        """
        Create the root principal if configured and missing, and make sure
        it holds the root role.
        """
        if not root.enabled:
            return None

        user = await self.users.get_by_username(root.username)
        if user is None:
            user = await self.users.create(root.username, hash_password(root.password))
            logger.info("root_user_created", username=root.username, user_id=user.id)

        if await policy.store.get_role(root.role) is None:
            await policy.store.upsert_role(root.role, "Root principal role")
        await policy.assign_role(user.id, root.role)
        return user
