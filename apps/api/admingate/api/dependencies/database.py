"""
Database dependencies.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.core.container import Container


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session, committed when the handler succeeds."""
    async with get_container(request).session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
