"""
Policy administration service.

Seeds the store from the default policy file, manages subject-role
assignments and pushes store changes into the live enforcer.
"""

from typing import Awaitable, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.core.errors import PolicyReferenceError
from admingate.core.policy.loader import DefaultPolicy
from admingate.repositories.base import store_errors
from admingate.repositories.policy import PolicyStore
from admingate.schemas.policy import SeedReport

logger = structlog.get_logger()

# Rebuilds the live enforcer from committed store state; returns the line count
PolicyReloader = Callable[[], Awaitable[int]]


class PolicyService:
    """Writes to the policy store and keeps the enforcer in step with it."""

    def __init__(
        self,
        db: AsyncSession,
        reloader: PolicyReloader | None = None,
    ):
        self.db = db
        self.store = PolicyStore(db)
        self.reloader = reloader

    async def _validate(self, policy: DefaultPolicy) -> None:
        objects = {o.name for o in policy.get_creator_objects()}
        roles = {r.name for r in policy.get_creator_roles()}

        for entry in policy.get_creator_policies():
            if not entry.action:
                raise PolicyReferenceError(
                    f"policy for role {entry.role!r} on {entry.object!r} has no actions"
                )
            if entry.object not in objects and await self.store.get_object(entry.object) is None:
                raise PolicyReferenceError(f"unknown object: {entry.object}")
            if entry.role not in roles and await self.store.get_role(entry.role) is None:
                raise PolicyReferenceError(f"unknown role: {entry.role}")

    async def seed(self, policy: DefaultPolicy) -> SeedReport:
        """
        Upsert every object, role and rule of ``policy``.

        References are checked before anything is written. Running the
        same policy twice leaves the store unchanged.
        """
        await self._validate(policy)

        report = SeedReport()
        for obj in policy.get_creator_objects():
            if await self.store.upsert_object(obj.name, obj.type, obj.description):
                report.objects += 1
        for role in policy.get_creator_roles():
            if await self.store.upsert_role(role.name, role.description):
                report.roles += 1
        for entry in policy.get_creator_policies():
            for action in entry.action:
                if await self.store.upsert_rule(entry.object, entry.role, action):
                    report.rules += 1

        logger.info(
            "policy_seeded",
            objects=report.objects,
            roles=report.roles,
            rules=report.rules,
        )
        return report

    async def assign_role(self, subject_id: int | str, role: str) -> bool:
        if await self.store.get_role(role) is None:
            raise PolicyReferenceError(f"unknown role: {role}")
        created = await self.store.assign_role(str(subject_id), role)
        if created:
            logger.info("role_assigned", subject=str(subject_id), role=role)
        return created

    async def revoke_role(self, subject_id: int | str, role: str) -> bool:
        removed = await self.store.revoke_role(str(subject_id), role)
        if removed:
            logger.info("role_revoked", subject=str(subject_id), role=role)
        return removed

    async def reload(self) -> int:
        """
        Commit pending store writes, then rebuild the enforcer.

        The enforcer only ever sees committed rows. If the commit fails
        nothing is reloaded and the enforcer keeps the previous policy.
        """
        if self.reloader is None:
            return 0
        async with store_errors("policy.commit"):
            await self.db.commit()
        return await self.reloader()
