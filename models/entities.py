# models/entities.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.date_utils import parse_timestamp


class Profile(BaseModel):
    id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None


class Policy(BaseModel):
    id: str
    title: Optional[str] = ""
    description: Optional[str] = None
    category: Optional[str] = None
    status: str = "draft"
    current_version_id: Optional[str] = None
    created_by: Optional[str] = None


class PolicyVersion(BaseModel):
    id: str
    policy_id: str
    version_number: int = 1
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_url: Optional[str] = None
    published_at: Optional[datetime] = None
    change_summary: Optional[str] = None

    @field_validator("published_at", mode="before")
    @classmethod
    def _parse_published_at(cls, v):
        return parse_timestamp(v)


class PolicyAssignment(BaseModel):
    id: Optional[str] = None
    policy_id: str
    user_id: Optional[str] = None
    group_id: Optional[str] = None
    due_date: Optional[datetime] = None
    assigned_by: Optional[str] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_due_date(cls, v):
        return parse_timestamp(v)


class Attestation(BaseModel):
    id: Optional[str] = None
    user_id: str
    policy_version_id: str
    signed_at: Optional[datetime] = None
    assessment_passed: Optional[bool] = None
    # joined from profiles for display
    full_name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("signed_at", mode="before")
    @classmethod
    def _parse_signed_at(cls, v):
        return parse_timestamp(v)


class Group(BaseModel):
    id: str
    name: str
    description: Optional[str] = None


class GroupMember(BaseModel):
    group_id: str
    user_id: str


class ApprovalStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_assigned: int = Field(0, alias="totalAssigned")
    completed: int = 0
    pending: int = 0
    overdue: int = 0


class ApprovalStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    policy_id: str = Field(alias="policyId")
    current_version_id: Optional[str] = Field(None, alias="currentVersionId")
    stats: ApprovalStats = Field(default_factory=ApprovalStats)
    completion_percentage: int = Field(0, alias="completionPercentage")
    recent_attestations: List[Attestation] = Field(default_factory=list, alias="recentAttestations")
