# models/__init__.py
from .entities import (
    ApprovalStats,
    ApprovalStatus,
    Attestation,
    Group,
    GroupMember,
    Policy,
    PolicyAssignment,
    PolicyVersion,
    Profile,
)
from .schemas import IntakeForm, PolicyUpdate

__all__ = [
    "ApprovalStats",
    "ApprovalStatus",
    "Attestation",
    "Group",
    "GroupMember",
    "Policy",
    "PolicyAssignment",
    "PolicyVersion",
    "Profile",
    "IntakeForm",
    "PolicyUpdate",
]
