"""
Tests for keeping the live enforcer in step with committed policy state.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from admingate.core.config import DatabaseSettings
from admingate.core.container import build_container
from admingate.core.errors import NoPermission, StoreFailure
from admingate.services.policy import PolicyService

DOMAINS = "/api/v1/domains"


@pytest_asyncio.fixture
async def file_container(tmp_path, settings):
    """Container over a file database so sessions use separate connections."""
    file_settings = settings.model_copy(
        update={"database": DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'policy.db'}")}
    )
    container = await build_container(file_settings)
    yield container
    await container.close()


async def grant(container, subject_id: int, role: str) -> None:
    async with container.session_factory() as session:
        service = PolicyService(session, container.reload_policy)
        await service.assign_role(subject_id, role)
        await service.reload()


async def assignments_of(container, subject_id: int) -> list[str]:
    async with container.session_factory() as session:
        service = PolicyService(session)
        return [a.role for a in await service.store.list_assignments(str(subject_id))]


@pytest.mark.asyncio
async def test_revoke_holds_after_reload_from_other_session(file_container):
    await grant(file_container, 42, "admin")
    gate = file_container.gate
    assert gate.authorize(42, DOMAINS, "GET") is True

    async with file_container.session_factory() as session:
        service = PolicyService(session, file_container.reload_policy)
        await service.revoke_role(42, "admin")

        # Another request reloads while the revoke is still uncommitted
        await file_container.reload_policy()
        assert gate.authorize(42, DOMAINS, "GET") is True

        await service.reload()

    assert await assignments_of(file_container, 42) == []
    with pytest.raises(NoPermission):
        gate.authorize(42, DOMAINS, "GET")


@pytest.mark.asyncio
async def test_concurrent_reloads_end_on_committed_state(file_container):
    await grant(file_container, 42, "admin")
    gate = file_container.gate

    async with file_container.session_factory() as session:
        service = PolicyService(session, file_container.reload_policy)
        await service.revoke_role(42, "admin")

        await asyncio.gather(
            file_container.reload_policy(),
            service.reload(),
            file_container.reload_policy(),
        )

    assert await assignments_of(file_container, 42) == []
    with pytest.raises(NoPermission):
        gate.authorize(42, DOMAINS, "GET")


@pytest.mark.asyncio
async def test_grant_is_visible_only_after_commit(file_container):
    gate = file_container.gate

    async with file_container.session_factory() as session:
        service = PolicyService(session, file_container.reload_policy)
        await service.assign_role(7, "viewer")

        await file_container.reload_policy()
        with pytest.raises(NoPermission):
            gate.authorize(7, DOMAINS, "GET")

        await service.reload()

    assert gate.authorize(7, DOMAINS, "GET") is True


class FailingCommitSession:
    async def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


@pytest.mark.asyncio
async def test_failed_commit_skips_reload():
    calls = []

    async def reloader() -> int:
        calls.append("reload")
        return 0

    service = PolicyService(FailingCommitSession(), reloader)

    with pytest.raises(StoreFailure, match="policy.commit"):
        await service.reload()
    assert calls == []
