"""
Casbin adapter backed by the relational policy store.

Casbin calls ``load_policy`` synchronously, so the adapter serves a
snapshot that ``refresh`` pulls from the store ahead of time. Enforcement
never touches the database.
"""

from casbin import persist
from casbin.model import Model
from sqlalchemy.ext.asyncio import AsyncSession

from admingate.repositories.policy import PolicyLine, PolicyStore


class PolicyStoreAdapter(persist.Adapter):
    """
    Read-only Casbin adapter.

    Usage:
        adapter = PolicyStoreAdapter()
        async with session_factory() as session:
            await adapter.refresh(session)
        enforcer = build_enforcer(adapter)
    """

    def __init__(self) -> None:
        self._lines: list[PolicyLine] = []

    @property
    def lines(self) -> list[PolicyLine]:
        return list(self._lines)

    async def refresh(self, session: AsyncSession) -> int:
        """Replace the snapshot with the current store contents."""
        self._lines = await PolicyStore(session).load_lines()
        return len(self._lines)

    def load_policy(self, model: Model) -> None:
        for line in self._lines:
            persist.load_policy_line(", ".join(line), model)

    # Writes go through PolicyStore; the enforcer never saves.
    def save_policy(self, model: Model) -> bool:
        return False

    def add_policy(self, sec: str, ptype: str, rule: list[str]) -> None:
        pass

    def remove_policy(self, sec: str, ptype: str, rule: list[str]) -> None:
        pass

    def remove_filtered_policy(
        self, sec: str, ptype: str, field_index: int, *field_values: str
    ) -> None:
        pass
