# services/policy_repo.py
"""
Typed reads and writes over the relational store.

Rows leave this module as entity models; nothing above it handles raw dicts.
"""
import logging
from typing import Any, Dict, List, Optional

from models.entities import (
    Attestation,
    Group,
    GroupMember,
    Policy,
    PolicyAssignment,
    PolicyVersion,
    Profile,
)
from services.rest_store import eq, in_list, ilike
from utils.date_utils import utc_now

logging.basicConfig(level=logging.INFO)


def get_policy(store, policy_id: str) -> Optional[Policy]:
    rows = store.select("policies", {"id": eq(policy_id), "select": "*", "limit": 1})
    return Policy(**rows[0]) if rows else None


def list_policies(store) -> List[Policy]:
    rows = store.select("policies", {"select": "id,title,category,status,current_version_id"})
    return [Policy(**r) for r in rows]


def list_policy_versions(store, policy_id: str) -> List[PolicyVersion]:
    rows = store.select("policy_versions", {
        "policy_id": eq(policy_id),
        "select": "*",
        "order": "version_number.asc",
    })
    return [PolicyVersion(**r) for r in rows]


def list_assignments(store, policy_id: str) -> List[PolicyAssignment]:
    rows = store.select("policy_assignments", {"policy_id": eq(policy_id), "select": "*"})
    return [PolicyAssignment(**r) for r in rows]


def list_group_member_ids(store, group_id: str) -> List[str]:
    rows = store.select("group_members", {"group_id": eq(group_id), "select": "group_id,user_id"})
    return [GroupMember(**r).user_id for r in rows if r.get("user_id")]


def list_profiles(store, user_ids: List[str]) -> Dict[str, Profile]:
    if not user_ids:
        return {}
    rows = store.select("profiles", {
        "id": in_list(user_ids),
        "select": "id,full_name,email,role,department",
    })
    return {r["id"]: Profile(**r) for r in rows}


def get_profile(store, user_id: str) -> Optional[Profile]:
    rows = store.select("profiles", {"id": eq(user_id), "select": "id,full_name,email,role,department", "limit": 1})
    return Profile(**rows[0]) if rows else None


def list_attestations(store, version_id: str) -> List[Attestation]:
    """Attestations for one version, newest first, with signer name/email filled in."""
    rows = store.select("attestations", {
        "policy_version_id": eq(version_id),
        "select": "*",
        "order": "signed_at.desc",
    })
    attestations = [Attestation(**r) for r in rows]
    profiles = list_profiles(store, sorted({a.user_id for a in attestations}))
    for a in attestations:
        p = profiles.get(a.user_id)
        if p:
            a.full_name = p.full_name
            a.email = p.email
    return attestations


def find_group_by_name(store, name: str) -> Optional[Group]:
    rows = store.select("groups", {"name": ilike(name), "select": "*", "limit": 1})
    return Group(**rows[0]) if rows else None


def create_group(store, name: str, description: str) -> Group:
    rows = store.insert("groups", {"name": name, "description": description})
    return Group(**rows[0])


def create_policy(store, title: str, category: Optional[str], created_by: Optional[str] = None,
                  status: str = "draft", description: Optional[str] = None) -> Policy:
    payload: Dict[str, Any] = {"title": title, "category": category or None, "status": status}
    if description:
        payload["description"] = description
    if created_by:
        payload["created_by"] = created_by
    rows = store.insert("policies", payload)
    policy = Policy(**rows[0])
    logging.info(f"Created policy {policy.id} ({policy.title})")
    return policy


def create_version(store, policy_id: str, version_number: int, file_name: str,
                   file_size: int, file_url: str, change_summary: Optional[str] = None) -> PolicyVersion:
    payload: Dict[str, Any] = {
        "policy_id": policy_id,
        "version_number": version_number,
        "file_name": file_name,
        "file_size": file_size,
        "file_url": file_url,
        "published_at": utc_now().isoformat(),
    }
    if change_summary:
        payload["change_summary"] = change_summary
    rows = store.insert("policy_versions", payload)
    version = PolicyVersion(**rows[0])
    logging.info(f"Created version {version.id} (v{version.version_number}) for policy {policy_id}")
    return version


def update_version_file(store, version_id: str, file_name: str, file_size: int, file_url: str) -> None:
    store.update("policy_versions", {
        "file_name": file_name,
        "file_size": file_size,
        "file_url": file_url,
    }, {"id": eq(version_id)})


def set_current_version(store, policy_id: str, version_id: str) -> None:
    store.update("policies", {"current_version_id": version_id}, {"id": eq(policy_id)})


def update_policy_fields(store, policy_id: str, values: Dict[str, Any]) -> Optional[Policy]:
    rows = store.update("policies", values, {"id": eq(policy_id)})
    return Policy(**rows[0]) if rows else None
