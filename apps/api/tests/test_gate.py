"""
Tests for the enforcement gate and the Casbin model.
"""

import pytest

from admingate.core.errors import EnforcementFailure, NoPermission
from admingate.core.policy.adapter import PolicyStoreAdapter
from admingate.core.policy.gate import EnforcementGate, skip_methods, skip_path_prefixes
from admingate.core.policy.loader import (
    CreatorObject,
    CreatorPolicy,
    CreatorRole,
    DefaultPolicy,
)
from admingate.core.policy.model import build_enforcer
from admingate.services.policy import PolicyService


class ExplodingEnforcer:
    """Fails the test if consulted, or raises on purpose."""

    def __init__(self, error: Exception | None = None):
        self.error = error or AssertionError("enforcer must not be consulted")
        self.calls = 0

    def enforce(self, *args):
        self.calls += 1
        raise self.error


async def build_gate(db, policy: DefaultPolicy, assignments: list[tuple[int, str]]):
    adapter = PolicyStoreAdapter()
    service = PolicyService(db)
    await service.seed(policy)
    for subject_id, role in assignments:
        await service.assign_role(subject_id, role)
    await adapter.refresh(db)
    return EnforcementGate(build_enforcer(adapter))


ORDER_POLICY = DefaultPolicy(
    creator_object=[CreatorObject(name="order", type="resource")],
    creator_role=[CreatorRole(name="admin")],
    creator_policy=[CreatorPolicy(object="order", role="admin", action=["GET", "POST"])],
)


@pytest.mark.asyncio
async def test_seeded_role_scenario(db):
    gate = await build_gate(db, ORDER_POLICY, [(42, "admin")])

    assert gate.authorize(42, "order", "GET") is True
    assert gate.authorize("42", "order", "POST") is True
    with pytest.raises(NoPermission):
        gate.authorize(42, "order", "DELETE")
    with pytest.raises(NoPermission):
        gate.authorize(7, "order", "GET")


@pytest.mark.asyncio
async def test_uncovered_triples_are_denied(db):
    gate = await build_gate(db, ORDER_POLICY, [(42, "admin")])

    for subject, obj, act in [
        (42, "invoice", "GET"),
        (42, "orders", "GET"),
        (42, "order/1", "GET"),
        (1, "order", "POST"),
    ]:
        with pytest.raises(NoPermission):
            gate.authorize(subject, obj, act)


@pytest.mark.asyncio
async def test_decisions_are_deterministic(db):
    gate = await build_gate(db, ORDER_POLICY, [(42, "admin")])

    assert all(gate.authorize(42, "order", "GET") for _ in range(20))
    for _ in range(20):
        with pytest.raises(NoPermission):
            gate.authorize(7, "order", "GET")


@pytest.mark.asyncio
async def test_path_patterns_and_wildcard_action(db):
    policy = DefaultPolicy(
        creator_object=[CreatorObject(name="/api/v1/domains/:id", type="api")],
        creator_role=[CreatorRole(name="admin"), CreatorRole(name="viewer")],
        creator_policy=[
            CreatorPolicy(object="/api/v1/domains/:id", role="admin", action=["*"]),
            CreatorPolicy(object="/api/v1/domains/:id", role="viewer", action=["GET"]),
        ],
    )
    gate = await build_gate(db, policy, [(1, "admin"), (2, "viewer")])

    assert gate.authorize(1, "/api/v1/domains/5", "DELETE") is True
    assert gate.authorize(2, "/api/v1/domains/5", "GET") is True
    with pytest.raises(NoPermission):
        gate.authorize(2, "/api/v1/domains/5", "DELETE")
    with pytest.raises(NoPermission):
        gate.authorize(1, "/api/v1/domains/5/status", "PATCH")


@pytest.mark.asyncio
async def test_reload_picks_up_new_assignment(db):
    adapter = PolicyStoreAdapter()
    await PolicyService(db).seed(ORDER_POLICY)
    await adapter.refresh(db)
    enforcer = build_enforcer(adapter)
    gate = EnforcementGate(enforcer)

    async def reload() -> int:
        count = await adapter.refresh(db)
        enforcer.load_policy()
        return count

    service = PolicyService(db, reload)

    with pytest.raises(NoPermission):
        gate.authorize(42, "order", "GET")

    await service.assign_role(42, "admin")
    await service.reload()
    assert gate.authorize(42, "order", "GET") is True

    await service.revoke_role(42, "admin")
    await service.reload()
    with pytest.raises(NoPermission):
        gate.authorize(42, "order", "GET")


def test_disabled_gate_never_consults_enforcer():
    enforcer = ExplodingEnforcer()
    gate = EnforcementGate(enforcer, enabled=False)

    assert gate.authorize(7, "order", "DELETE") is True
    assert gate.authorize(None, "", "") is True
    assert enforcer.calls == 0


def test_engine_error_is_enforcement_failure():
    gate = EnforcementGate(ExplodingEnforcer(RuntimeError("model broken")))

    with pytest.raises(EnforcementFailure) as exc_info:
        gate.authorize(42, "order", "GET")

    assert exc_info.value.code == "enforcement_failure"
    assert exc_info.value.status_code == 500


@pytest.mark.parametrize(
    "subject, path, method",
    [(None, "order", "GET"), ("", "order", "GET"), (42, "", "GET"), (42, "order", "")],
)
def test_missing_inputs_fail_closed(subject, path, method):
    enforcer = ExplodingEnforcer()
    gate = EnforcementGate(enforcer)

    with pytest.raises(EnforcementFailure):
        gate.authorize(subject, path, method)
    assert enforcer.calls == 0


def test_gate_without_enforcer_fails_closed():
    with pytest.raises(EnforcementFailure):
        EnforcementGate(None).authorize(42, "order", "GET")


def test_skip_path_prefixes():
    skip = skip_path_prefixes("/health", "/api/v1/auth/login", "/docs/")

    assert skip("/health", "GET")
    assert skip("/api/v1/auth/login", "POST")
    assert skip("/docs/oauth2-redirect", "GET")
    assert not skip("/healthz", "GET")
    assert not skip("/api/v1/domains", "GET")


def test_skip_methods():
    skip = skip_methods("options", "HEAD")

    assert skip("/api/v1/domains", "OPTIONS")
    assert skip("/api/v1/domains", "head")
    assert not skip("/api/v1/domains", "GET")
