"""
User repository.
"""

from sqlalchemy import select

from admingate.models.user import User

from .base import BaseRepository, store_errors


class UserRepository(BaseRepository[User]):
    model = User
    name = "user"
    fields = ("id", "username", "is_active", "created_at", "updated_at")

    async def get_by_id(self, id: int) -> User | None:
        return await self._get_entity(id)

    async def get_by_username(self, username: str) -> User | None:
        return await self._find_one(select(User).where(User.username == username))

    async def create(self, username: str, password_hash: str) -> User:
        user = User(username=username, password_hash=password_hash)
        async with store_errors("user.create"):
            self.db.add(user)
            await self.db.flush()
        return user
