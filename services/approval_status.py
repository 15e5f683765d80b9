# services/approval_status.py
"""
Attestation completion statistics for a single policy.

Every view recomputes from the store: current version -> assignments (with
groups expanded to their members) -> attestations on that version.
"""
import logging
import math
from datetime import datetime
from typing import Dict, Optional

from config import RECENT_ATTESTATION_LIMIT
from models.entities import ApprovalStats, ApprovalStatus
from services import policy_repo
from utils.date_utils import utc_now

logging.basicConfig(level=logging.INFO)


def completion_percentage(completed: int, total_assigned: int) -> int:
    if total_assigned <= 0:
        return 0
    # half-up, so 12.5% reads as 13%
    return int(math.floor(100 * completed / total_assigned + 0.5))


def resolve_assigned_users(store, assignments) -> Dict[str, Optional[datetime]]:
    """
    Map each targeted user to the due date of the first assignment that reached them.
    Direct and group assignments share one registry, so overlaps count once.
    """
    registered: Dict[str, Optional[datetime]] = {}
    members_by_group: Dict[str, list] = {}

    for a in assignments:
        if a.user_id:
            registered.setdefault(a.user_id, a.due_date)
        elif a.group_id:
            if a.group_id not in members_by_group:
                members_by_group[a.group_id] = policy_repo.list_group_member_ids(store, a.group_id)
            for user_id in members_by_group[a.group_id]:
                registered.setdefault(user_id, a.due_date)
    return registered


def compute_approval_status(store, policy_id: str, now: Optional[datetime] = None,
                            recent_limit: int = RECENT_ATTESTATION_LIMIT) -> ApprovalStatus:
    now = now or utc_now()

    policy = policy_repo.get_policy(store, policy_id)
    if policy is None or not policy.current_version_id:
        return ApprovalStatus(policy_id=policy_id)

    version_id = policy.current_version_id
    assignments = policy_repo.list_assignments(store, policy_id)
    registered = resolve_assigned_users(store, assignments)
    attestations = policy_repo.list_attestations(store, version_id)
    attested = {a.user_id for a in attestations}

    total_assigned = len(registered)
    completed = sum(1 for user_id in registered if user_id in attested)
    pending = total_assigned - completed
    overdue = sum(
        1 for user_id, due in registered.items()
        if user_id not in attested and due is not None and due < now
    )

    stats = ApprovalStats(total_assigned=total_assigned, completed=completed,
                          pending=pending, overdue=overdue)
    return ApprovalStatus(
        policy_id=policy_id,
        current_version_id=version_id,
        stats=stats,
        completion_percentage=completion_percentage(completed, total_assigned),
        recent_attestations=attestations[:recent_limit],
    )


def load_approval_status(store, policy_id: str, now: Optional[datetime] = None) -> ApprovalStatus:
    """Like compute_approval_status, but a failed fetch leaves the zeroed defaults."""
    try:
        return compute_approval_status(store, policy_id, now=now)
    except Exception as e:
        logging.error(f"Failed to fetch approval status for policy {policy_id}: {e}")
        return ApprovalStatus(policy_id=policy_id)
