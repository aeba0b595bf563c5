"""
Policy store schemas.
"""

from pydantic import BaseModel, Field


class PolicyObjectResponse(BaseModel):
    id: int
    name: str
    type: str
    description: str


class PolicyRoleResponse(BaseModel):
    id: int
    name: str
    description: str


class PolicyRuleResponse(BaseModel):
    id: int
    object: str
    role: str
    action: str


class AssignmentRequest(BaseModel):
    subject_id: int = Field(ge=0)
    role: str = Field(min_length=1, max_length=100)


class AssignmentResponse(BaseModel):
    subject: str
    role: str


class SeedReport(BaseModel):
    """Counts of rows inserted by one seeding run (updates are not counted)."""
    objects: int = 0
    roles: int = 0
    rules: int = 0
