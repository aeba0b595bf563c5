"""
Policy store.

Persists objects, roles, rules and subject-role assignments and renders
them as Casbin policy lines. Every write is an idempotent upsert keyed
on the natural name.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.models.policy import CasbinObject, CasbinRole, CasbinRule, SubjectRole
from admingate.schemas.policy import (
    AssignmentResponse,
    PolicyObjectResponse,
    PolicyRoleResponse,
    PolicyRuleResponse,
)

from .base import store_errors

PolicyLine = tuple[str, ...]


def to_object_schema(item: CasbinObject) -> PolicyObjectResponse:
    return PolicyObjectResponse(
        id=item.id, name=item.name, type=item.type, description=item.description
    )


def to_role_schema(item: CasbinRole) -> PolicyRoleResponse:
    return PolicyRoleResponse(id=item.id, name=item.name, description=item.description)


def to_rule_schema(item: CasbinRule) -> PolicyRuleResponse:
    return PolicyRuleResponse(
        id=item.id, object=item.object, role=item.role, action=item.action
    )


class PolicyStore:
    """
    Durable home of the authorization rules.

    Usage:
        store = PolicyStore(session)
        created = await store.upsert_role("admin", "Administrators")
        lines = await store.load_lines()
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------

    async def get_object(self, name: str) -> CasbinObject | None:
        async with store_errors("policy.get_object"):
            return await self.db.scalar(select(CasbinObject).where(CasbinObject.name == name))

    async def upsert_object(self, name: str, type: str = "", description: str = "") -> bool:
        """Insert or update by name. Returns True when a row was inserted."""
        item = await self.get_object(name)
        async with store_errors("policy.upsert_object"):
            if item is None:
                self.db.add(CasbinObject(name=name, type=type, description=description))
                await self.db.flush()
                return True
            item.type = type
            item.description = description
            await self.db.flush()
            return False

    async def list_objects(self) -> list[PolicyObjectResponse]:
        async with store_errors("policy.list_objects"):
            result = await self.db.scalars(select(CasbinObject).order_by(CasbinObject.id))
        return [to_object_schema(o) for o in result]

    # ------------------------------------------------------------
    # Roles
    # ------------------------------------------------------------

    async def get_role(self, name: str) -> CasbinRole | None:
        async with store_errors("policy.get_role"):
            return await self.db.scalar(select(CasbinRole).where(CasbinRole.name == name))

    async def upsert_role(self, name: str, description: str = "") -> bool:
        item = await self.get_role(name)
        async with store_errors("policy.upsert_role"):
            if item is None:
                self.db.add(CasbinRole(name=name, description=description))
                await self.db.flush()
                return True
            item.description = description
            await self.db.flush()
            return False

    async def list_roles(self) -> list[PolicyRoleResponse]:
        async with store_errors("policy.list_roles"):
            result = await self.db.scalars(select(CasbinRole).order_by(CasbinRole.id))
        return [to_role_schema(r) for r in result]

    # ------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------

    async def upsert_rule(self, object: str, role: str, action: str) -> bool:
        stmt = select(CasbinRule.id).where(
            CasbinRule.object == object,
            CasbinRule.role == role,
            CasbinRule.action == action,
        )
        async with store_errors("policy.upsert_rule"):
            if await self.db.scalar(stmt) is not None:
                return False
            self.db.add(CasbinRule(object=object, role=role, action=action))
            await self.db.flush()
            return True

    async def list_rules(self, role: str | None = None) -> list[PolicyRuleResponse]:
        stmt = select(CasbinRule).order_by(CasbinRule.id)
        if role:
            stmt = stmt.where(CasbinRule.role == role)
        async with store_errors("policy.list_rules"):
            result = await self.db.scalars(stmt)
        return [to_rule_schema(r) for r in result]

    # ------------------------------------------------------------
    # Subject assignments
    # ------------------------------------------------------------

    async def assign_role(self, subject: str, role: str) -> bool:
        stmt = select(SubjectRole.id).where(
            SubjectRole.subject == subject, SubjectRole.role == role
        )
        async with store_errors("policy.assign_role"):
            if await self.db.scalar(stmt) is not None:
                return False
            self.db.add(SubjectRole(subject=subject, role=role))
            await self.db.flush()
            return True

    async def revoke_role(self, subject: str, role: str) -> bool:
        stmt = delete(SubjectRole).where(
            SubjectRole.subject == subject, SubjectRole.role == role
        )
        async with store_errors("policy.revoke_role"):
            result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def list_assignments(self, subject: str | None = None) -> list[AssignmentResponse]:
        stmt = select(SubjectRole).order_by(SubjectRole.id)
        if subject is not None:
            stmt = stmt.where(SubjectRole.subject == subject)
        async with store_errors("policy.list_assignments"):
            result = await self.db.scalars(stmt)
        return [AssignmentResponse(subject=a.subject, role=a.role) for a in result]

    # ------------------------------------------------------------
    # Casbin view
    # ------------------------------------------------------------

    async def load_lines(self) -> list[PolicyLine]:
        """
        Render the whole store as Casbin lines.

        Rules come first, then groupings, each in insertion order.
        """
        async with store_errors("policy.load"):
            rules = (
                await self.db.execute(
                    select(CasbinRule.role, CasbinRule.object, CasbinRule.action)
                    .order_by(CasbinRule.id)
                )
            ).all()
            groupings = (
                await self.db.execute(
                    select(SubjectRole.subject, SubjectRole.role).order_by(SubjectRole.id)
                )
            ).all()

        lines: list[PolicyLine] = [("p", r.role, r.object, r.action) for r in rules]
        lines.extend(("g", g.subject, g.role) for g in groupings)
        return lines
