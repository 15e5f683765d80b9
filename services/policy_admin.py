# services/policy_admin.py
import logging
from typing import Optional

from fastapi import HTTPException

from config import POLICY_STATUSES
from models.entities import Policy
from services import policy_repo
from services.rest_store import eq, in_list

logging.basicConfig(level=logging.INFO)


def _require_policy(store, policy_id: str) -> Policy:
    policy = policy_repo.get_policy(store, policy_id)
    if policy is None:
        raise HTTPException(404, f"Policy {policy_id} not found")
    return policy


def update_policy_status(store, policy_id: str, status: str) -> Policy:
    if status not in POLICY_STATUSES:
        raise HTTPException(400, f"Invalid status '{status}'. Expected one of: {', '.join(POLICY_STATUSES)}")
    _require_policy(store, policy_id)
    updated = policy_repo.update_policy_fields(store, policy_id, {"status": status})
    logging.info(f"Policy {policy_id} status -> {status}")
    return updated or _require_policy(store, policy_id)


def update_policy_category(store, policy_id: str, category: Optional[str]) -> Policy:
    _require_policy(store, policy_id)
    value = (category or "").strip() or None
    updated = policy_repo.update_policy_fields(store, policy_id, {"category": value})
    logging.info(f"Policy {policy_id} category -> {value!r}")
    return updated or _require_policy(store, policy_id)


def delete_policy(store, policy_id: str) -> None:
    """
    Remove a policy and everything hanging off it.

    The store has no cascade for these tables, so rows go child-first:
    assignments, attestations of each version, versions, then the policy.
    """
    _require_policy(store, policy_id)

    store.delete("policy_assignments", {"policy_id": eq(policy_id)})

    version_ids = [v.id for v in policy_repo.list_policy_versions(store, policy_id)]
    if version_ids:
        store.delete("attestations", {"policy_version_id": in_list(version_ids)})
        # current_version_id points at a version row; clear it before the versions go
        policy_repo.set_current_version(store, policy_id, None)
        store.delete("policy_versions", {"policy_id": eq(policy_id)})

    store.delete("policies", {"id": eq(policy_id)})
    logging.info(f"Deleted policy {policy_id} with {len(version_ids)} version(s)")
