"""
Tests for domain persistence and routes.
"""

import asyncio

import pytest
import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from admingate.core.errors import ConflictError
from admingate.models.database import build_session_factory, init_db
from admingate.models.domain import DomainStatus
from admingate.repositories.base import Active, Deleted
from admingate.repositories.domain import DomainRepository
from admingate.schemas.common import OrderDirection, OrderField, QueryOptions
from admingate.schemas.domain import DomainCreate, DomainQueryParam, DomainUpdate


async def seed_domains(repo: DomainRepository, *names: str) -> list[int]:
    ids = []
    for name in names:
        domain = await repo.create(DomainCreate(name=name))
        ids.append(domain.id)
    return ids


@pytest.mark.asyncio
async def test_create_and_get(db):
    repo = DomainRepository(db)

    created = await repo.create(DomainCreate(name="acme", memo="first"), maintainer_id=9)
    fetched = await repo.get(created.id)

    assert fetched.name == "acme"
    assert fetched.memo == "first"
    assert fetched.status == DomainStatus.ENABLED
    assert fetched.maintainer_id == 9
    assert fetched.created_at is not None


@pytest.mark.asyncio
async def test_get_missing_returns_none(db):
    assert await DomainRepository(db).get(999) is None


@pytest.mark.asyncio
async def test_duplicate_live_name_conflicts(db):
    repo = DomainRepository(db)
    await repo.create(DomainCreate(name="acme"))

    with pytest.raises(ConflictError):
        await repo.create(DomainCreate(name="acme"))


@pytest.mark.asyncio
async def test_default_order_is_insertion_order(db):
    repo = DomainRepository(db)
    await seed_domains(repo, "charlie", "alpha", "bravo")

    page = await repo.query(DomainQueryParam())

    assert [d.name for d in page.items] == ["charlie", "alpha", "bravo"]
    assert page.total == 3


@pytest.mark.asyncio
async def test_filters_are_combined(db):
    repo = DomainRepository(db)
    ids = await seed_domains(repo, "north-eu", "north-us", "south-eu")
    await repo.update_status(ids[1], DomainStatus.DISABLED)

    page = await repo.query(DomainQueryParam(query_value="north", status=DomainStatus.ENABLED))
    assert [d.name for d in page.items] == ["north-eu"]

    page = await repo.query(DomainQueryParam(ids=[ids[0], ids[2]], query_value="eu"))
    assert [d.name for d in page.items] == ["north-eu", "south-eu"]

    page = await repo.query(DomainQueryParam(name="south-eu"))
    assert [d.id for d in page.items] == [ids[2]]


@pytest.mark.asyncio
async def test_substring_match_escapes_wildcards(db):
    repo = DomainRepository(db)
    await seed_domains(repo, "100%-uptime", "100-uptime")

    page = await repo.query(DomainQueryParam(query_value="0%"))

    assert [d.name for d in page.items] == ["100%-uptime"]


@pytest.mark.asyncio
async def test_order_and_select_fields(db):
    repo = DomainRepository(db)
    await seed_domains(repo, "bravo", "alpha", "charlie")

    opts = QueryOptions(
        order_fields=[OrderField(key="name", direction=OrderDirection.DESC)],
        select_fields=["name"],
    )
    page = await repo.query(DomainQueryParam(), opts)

    assert [d.name for d in page.items] == ["charlie", "bravo", "alpha"]
    assert all(d.id for d in page.items)
    assert all(d.memo is None and d.created_at is None for d in page.items)


@pytest.mark.asyncio
async def test_unknown_option_field_rejected(db):
    repo = DomainRepository(db)

    with pytest.raises(ValueError):
        await repo.query(DomainQueryParam(), QueryOptions(order_fields=[OrderField(key="secret")]))
    with pytest.raises(ValueError):
        await repo.query(DomainQueryParam(), QueryOptions(select_fields=["deleted_at"]))


@pytest.mark.asyncio
async def test_pagination(db):
    repo = DomainRepository(db)
    await seed_domains(repo, *[f"d{i}" for i in range(5)])

    page = await repo.query(DomainQueryParam(page=2, per_page=2))
    assert [d.name for d in page.items] == ["d2", "d3"]
    assert page.total == 5
    assert page.pages == 3
    assert page.has_next and page.has_prev

    everything = await repo.query(DomainQueryParam(pagination=False, per_page=2))
    assert len(everything.items) == 5
    assert everything.total == 5


@pytest.mark.asyncio
async def test_partial_update_applies_set_fields_only(db):
    repo = DomainRepository(db)
    created = await repo.create(DomainCreate(name="acme", memo="old"))

    assert await repo.update(created.id, DomainUpdate(memo="new", name="")) is True

    fetched = await repo.get(created.id)
    assert fetched.name == "acme"
    assert fetched.memo == "new"


@pytest.mark.asyncio
async def test_update_rename_conflict(db):
    repo = DomainRepository(db)
    ids = await seed_domains(repo, "acme", "globex")

    with pytest.raises(ConflictError):
        await repo.update(ids[1], DomainUpdate(name="acme"))


@pytest.mark.asyncio
async def test_update_and_delete_missing(db):
    repo = DomainRepository(db)

    assert await repo.update(404, DomainUpdate(memo="x")) is False
    assert await repo.delete(404) is False
    assert await repo.update_status(404, DomainStatus.DISABLED) is False


@pytest.mark.asyncio
async def test_update_status(db):
    repo = DomainRepository(db)
    [domain_id] = await seed_domains(repo, "acme")

    assert await repo.update_status(domain_id, DomainStatus.DISABLED) is True

    assert (await repo.get(domain_id)).status == DomainStatus.DISABLED


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """Sessions over a file database, each on its own connection."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'domains.db'}")
    await init_db(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.mark.asyncio
async def test_status_changes_are_atomic_to_concurrent_queries(file_session_factory):
    async with file_session_factory() as session:
        [domain_id] = await seed_domains(DomainRepository(session), "acme")
        await session.commit()

    observed = []

    async def toggle(status: DomainStatus, rounds: int) -> None:
        for _ in range(rounds):
            async with file_session_factory() as session:
                assert await DomainRepository(session).update_status(domain_id, status) is True
                await session.commit()
            status = (
                DomainStatus.DISABLED if status == DomainStatus.ENABLED else DomainStatus.ENABLED
            )
            await asyncio.sleep(0)

    async def watch(rounds: int) -> None:
        for _ in range(rounds):
            async with file_session_factory() as session:
                page = await DomainRepository(session).query(DomainQueryParam(ids=[domain_id]))
            [item] = page.items
            observed.append((item.status, item.updated_at))
            await asyncio.sleep(0)

    await asyncio.gather(
        toggle(DomainStatus.DISABLED, 10),
        toggle(DomainStatus.ENABLED, 10),
        watch(20),
        watch(20),
    )

    assert len(observed) == 40
    assert {status for status, _ in observed} <= {DomainStatus.ENABLED, DomainStatus.DISABLED}

    # Status and timestamp are written together, so one timestamp never
    # shows up with two different statuses
    status_at = {}
    for status, updated_at in observed:
        assert status_at.setdefault(updated_at, status) == status


@pytest.mark.asyncio
async def test_soft_delete_hides_row(db):
    repo = DomainRepository(db)
    [domain_id] = await seed_domains(repo, "acme")

    assert await repo.delete(domain_id) is True

    assert await repo.get(domain_id) is None
    assert (await repo.query(DomainQueryParam())).total == 0
    assert await repo.delete(domain_id) is False

    state = await repo.get_state(domain_id)
    assert isinstance(state, Deleted)
    assert state.record.name == "acme"
    assert state.deleted_at is not None


@pytest.mark.asyncio
async def test_soft_deleted_name_can_be_reused(db):
    repo = DomainRepository(db)
    [old_id] = await seed_domains(repo, "acme")
    await repo.delete(old_id)

    new = await repo.create(DomainCreate(name="acme"))

    assert new.id != old_id
    assert isinstance(await repo.get_state(new.id), Active)


@pytest.mark.asyncio
async def test_restore(db):
    repo = DomainRepository(db)
    [domain_id] = await seed_domains(repo, "acme")
    await repo.delete(domain_id)

    assert await repo.restore(domain_id) is True
    assert (await repo.get(domain_id)).name == "acme"
    assert await repo.restore(domain_id) is False


@pytest.mark.asyncio
async def test_restore_blocked_by_reused_name(db):
    repo = DomainRepository(db)
    [domain_id] = await seed_domains(repo, "acme")
    await repo.delete(domain_id)
    await repo.create(DomainCreate(name="acme"))

    with pytest.raises(ConflictError):
        await repo.restore(domain_id)


# ============ Routes ============


@pytest.mark.asyncio
async def test_domain_routes(client: AsyncClient, admin_headers):
    response = await client.post(
        "/api/v1/domains",
        json={"name": "acme", "memo": "hq"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    domain = response.json()
    assert domain["maintainer_id"] > 0

    response = await client.patch(
        f"/api/v1/domains/{domain['id']}/status",
        json={"status": DomainStatus.DISABLED.value},
        headers=admin_headers,
    )
    assert response.json()["status"] == DomainStatus.DISABLED.value

    response = await client.get(
        "/api/v1/domains",
        params={"status": DomainStatus.DISABLED.value, "fields": "name", "order": "-name"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert [d["name"] for d in response.json()["items"]] == ["acme"]

    response = await client.delete(f"/api/v1/domains/{domain['id']}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/domains/{domain['id']}", headers=admin_headers)
    assert response.status_code == 404

    response = await client.post(f"/api/v1/domains/{domain['id']}/restore", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["name"] == "acme"


@pytest.mark.asyncio
async def test_domain_conflict_and_bad_order(client: AsyncClient, admin_headers):
    await client.post("/api/v1/domains", json={"name": "acme"}, headers=admin_headers)

    response = await client.post("/api/v1/domains", json={"name": "acme"}, headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "conflict"

    response = await client.get(
        "/api/v1/domains",
        params={"order": "password"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["error"] == "invalid_argument"
