"""
Dependency container.

Holds everything the authorization stage builds: the engine, the session
factory, the policy adapter, the enforcer and the gate. The lifecycle
owns the container; request handlers reach it through ``app.state``.
"""

import asyncio
from dataclasses import dataclass, field

import casbin
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from admingate.models.database import build_engine, build_session_factory, init_db
from admingate.services.auth import AuthService
from admingate.services.menu import MenuService
from admingate.services.policy import PolicyService

from .config import Settings
from .policy.adapter import PolicyStoreAdapter
from .policy.gate import EnforcementGate
from .policy.loader import load_default_policy
from .policy.model import build_enforcer

logger = structlog.get_logger()


@dataclass
class Container:
    """
    Example:
    ```python
    container = await build_container(settings)
    async with container.session_factory() as session:
        ...
    await container.close()
    ```
    """

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    adapter: PolicyStoreAdapter
    enforcer: casbin.Enforcer
    gate: EnforcementGate
    _reload_lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def reload_policy(self) -> int:
        """
        Rebuild the enforcer from committed store state.

        Reloads run one at a time, each reading through its own session, so
        the last reload to finish always reflects the latest commit it saw.
        Callers commit their writes before calling this.
        """
        async with self._reload_lock:
            async with self.session_factory() as session:
                count = await self.adapter.refresh(session)
            self.enforcer.load_policy()
        logger.info("policy_reloaded", lines=count)
        return count

    async def close(self) -> None:
        """Release database connections."""
        await self.engine.dispose()


async def build_container(settings: Settings, engine: AsyncEngine | None = None) -> Container:
    """
    Build the authorization stack.

    Creates tables, seeds the default policy, the root principal and the
    menu data, snapshots the policy store and binds the enforcer to it.
    The engine is disposed if any step fails.
    """
    engine = engine or build_engine(settings.database)
    try:
        await init_db(engine)
        session_factory = build_session_factory(engine)
        adapter = PolicyStoreAdapter()

        async with session_factory() as session:
            policy = PolicyService(session)
            if settings.casbin.default_policy and settings.casbin.seed_on_start:
                await policy.seed(load_default_policy(settings.casbin.default_policy))
            await AuthService(session, settings.auth).ensure_root(settings.root, policy)
            if settings.menu.enable and settings.menu.data:
                await MenuService(session).init_data(settings.menu.data)
            await session.commit()
            await adapter.refresh(session)

        enforcer = build_enforcer(adapter, settings.casbin.model_path)
        gate = EnforcementGate(enforcer, enabled=settings.casbin.enable)
    except BaseException:
        await engine.dispose()
        raise

    logger.info(
        "authorization_ready",
        policy_lines=len(adapter.lines),
        enforcement=settings.casbin.enable,
    )
    return Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        adapter=adapter,
        enforcer=enforcer,
        gate=gate,
    )
