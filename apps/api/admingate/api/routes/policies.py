"""
Policy administration routes.

Writes land in the policy store first. ``reload`` commits them and then
rebuilds the live enforcer, so assignment changes take effect only once
they are durable.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from admingate.api.dependencies.database import get_container
from admingate.api.dependencies.services import get_policy_service
from admingate.core.policy.loader import load_default_policy
from admingate.schemas.policy import (
    AssignmentRequest,
    AssignmentResponse,
    PolicyObjectResponse,
    PolicyRoleResponse,
    PolicyRuleResponse,
    SeedReport,
)
from admingate.services.policy import PolicyService

router = APIRouter()


@router.get("/objects", response_model=list[PolicyObjectResponse])
async def list_objects(policy: PolicyService = Depends(get_policy_service)):
    return await policy.store.list_objects()


@router.get("/roles", response_model=list[PolicyRoleResponse])
async def list_roles(policy: PolicyService = Depends(get_policy_service)):
    return await policy.store.list_roles()


@router.get("/rules", response_model=list[PolicyRuleResponse])
async def list_rules(
    role: str | None = None,
    policy: PolicyService = Depends(get_policy_service),
):
    return await policy.store.list_rules(role)


@router.get("/assignments", response_model=list[AssignmentResponse])
async def list_assignments(
    subject_id: int | None = None,
    policy: PolicyService = Depends(get_policy_service),
):
    subject = str(subject_id) if subject_id is not None else None
    return await policy.store.list_assignments(subject)


@router.post(
    "/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_assignment(
    data: AssignmentRequest,
    policy: PolicyService = Depends(get_policy_service),
):
    """Grant a role to a subject."""
    await policy.assign_role(data.subject_id, data.role)
    await policy.reload()
    return AssignmentResponse(subject=str(data.subject_id), role=data.role)


@router.delete("/assignments", status_code=status.HTTP_204_NO_CONTENT)
async def remove_assignment(
    data: AssignmentRequest,
    policy: PolicyService = Depends(get_policy_service),
):
    if not await policy.revoke_role(data.subject_id, data.role):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    await policy.reload()


@router.post("/reload")
async def reload_policy(policy: PolicyService = Depends(get_policy_service)):
    """Rebuild the enforcer from the store."""
    return {"lines": await policy.reload()}


@router.post("/reseed", response_model=SeedReport)
async def reseed_policy(
    request: Request,
    policy: PolicyService = Depends(get_policy_service),
):
    """Re-apply the default policy file, then reload."""
    path = get_container(request).settings.casbin.default_policy
    if not path:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No default policy configured",
        )
    report = await policy.seed(load_default_policy(path))
    await policy.reload()
    return report
