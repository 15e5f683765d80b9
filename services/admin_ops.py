# services/admin_ops.py
"""
Administrative utilities behind the /admin routes: seed users and demo data,
clean them up again, and attach sample PDFs to existing policies.

Each step talks to the store or the auth service one call at a time. Failures
of a single user or file are logged and skipped; anything else propagates.
"""
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException

from config import (
    ADMIN_BATCH_SIZE,
    POLICY_BUCKET,
    POLICY_CATEGORIES,
    SAMPLE_POLICY_DIR,
    SAMPLE_POLICY_FILES,
    TEST_GROUPS,
    TEST_USER_DOMAIN,
)
from services import policy_repo
from services.identity import AuthClient
from services.rest_store import eq, in_list, neq
from services.storage import PDF_CONTENT_TYPE, build_policy_key, store_object

logging.basicConfig(level=logging.INFO)

SAMPLE_USER_PASSWORD = "Password123!"
DEMO_USER_PASSWORD = "Demo123!"
POLICY_INSERT_BATCH = 50
DEFAULT_POLICY_COUNT = 798


def chunked(items: List[Any], size: int) -> Iterable[List[Any]]:
    for start in range(0, len(items), max(1, size)):
        yield items[start:start + size]


def get_or_create_group(store, group_name: str) -> str:
    group = policy_repo.find_group_by_name(store, group_name)
    if group:
        return group.id
    logging.info(f"Group {group_name} not found, creating it...")
    return policy_repo.create_group(store, group_name, f"{group_name} group for sample users").id


def add_users_to_group(store, auth: AuthClient, group_name: str = "Admin",
                       number_of_users: int = 15) -> Dict[str, Any]:
    logging.info(f"Adding {number_of_users} users to group: {group_name}")
    group_id = get_or_create_group(store, group_name)

    start_index = store.count("profiles") + 1
    indices = list(range(start_index, start_index + number_of_users))
    created: List[Dict[str, str]] = []

    for batch in chunked(indices, ADMIN_BATCH_SIZE):
        for user_index in batch:
            email = f"user{user_index}@example.com"
            full_name = f"Test User {user_index}"
            try:
                user = auth.create_user(email, SAMPLE_USER_PASSWORD, full_name)
                store.insert("group_members", {"group_id": group_id, "user_id": user["id"]})
            except HTTPException as e:
                logging.error(f"Error creating user {email}: {e.detail}")
                continue
            created.append({"email": email, "fullName": full_name})
        logging.info(f"Created {len(created)}/{number_of_users} users so far")

    return {
        "message": f"Created {len(created)} users in {group_name} group",
        "users": created,
        "groupId": group_id,
    }


def _delete_logged(store, table: str, params: Dict[str, str]) -> None:
    try:
        store.delete(table, params)
        logging.info(f"Deleted {table} rows matching {params}")
    except HTTPException as e:
        logging.error(f"Error deleting {table}: {e.detail}")


def _delete_auth_users(auth: AuthClient, user_ids: Iterable[str]) -> int:
    deleted = 0
    for user_id in user_ids:
        try:
            auth.delete_user(user_id)
            deleted += 1
        except HTTPException as e:
            logging.error(f"Error deleting auth user {user_id}: {e.detail}")
    return deleted


def cleanup_users(store, auth: AuthClient, keep_user_id: str) -> Dict[str, Any]:
    """Remove every user except ``keep_user_id`` along with their rows."""
    logging.info(f"Starting cleanup, protecting user {keep_user_id}")
    keep = neq(keep_user_id)

    _delete_logged(store, "attestations", {"user_id": keep})
    _delete_logged(store, "assessment_results", {"user_id": keep})
    # neq never matches NULL, so group-level assignments survive
    _delete_logged(store, "policy_assignments", {"user_id": keep})
    _delete_logged(store, "group_members", {"user_id": keep})

    doomed = [r["id"] for r in store.select("profiles", {"id": keep, "select": "id"})]
    logging.info(f"Found {len(doomed)} users to delete")

    _delete_logged(store, "profiles", {"id": keep})
    deleted = _delete_auth_users(auth, doomed)
    logging.info(f"Deleted {deleted} auth users")

    return {"message": "Cleanup completed successfully", "deletedUsers": deleted}


def _remove_demo_data(store, auth: AuthClient, groups: List[Dict[str, Any]]) -> None:
    demo_ids = [u["id"] for u in auth.list_users()
                if f"@{TEST_USER_DOMAIN}" in (u.get("email") or "")]
    logging.info(f"Found {len(demo_ids)} existing test users to delete")

    if demo_ids:
        ids = in_list(demo_ids)
        # foreign keys point at profiles, so dependants go first
        _delete_logged(store, "attestations", {"user_id": ids})
        _delete_logged(store, "assessment_results", {"user_id": ids})
        _delete_logged(store, "policy_assignments", {"user_id": ids})
        _delete_logged(store, "policy_assignments", {"assigned_by": ids})
        _delete_logged(store, "group_members", {"user_id": ids})
        _delete_logged(store, "policies", {"created_by": ids})
        _delete_logged(store, "profiles", {"id": ids})

    # names contain spaces, so quote them inside in.(...)
    _delete_logged(store, "groups", {"name": in_list(f'"{g["name"]}"' for g in groups)})
    _delete_auth_users(auth, demo_ids)


def _find_user_id(auth: AuthClient, email: str) -> Optional[str]:
    for user in auth.list_users():
        if user.get("email") == email:
            return user.get("id")
    return None


def _create_demo_user(auth: AuthClient, email: str, full_name: str) -> Optional[str]:
    try:
        return auth.create_user(email, DEMO_USER_PASSWORD, full_name)["id"]
    except HTTPException as e:
        if "already been registered" in str(e.detail):
            logging.info(f"User {email} already exists, fetching ID...")
            return _find_user_id(auth, email)
        logging.error(f"Error creating user {email}: {e.detail}")
        return None


def policy_title(index: int, category: str) -> str:
    return f"{category} Policy - Version {index // len(POLICY_CATEGORIES) + 1}"


def policy_description(category: str) -> str:
    return (f"This policy outlines the guidelines and procedures for {category.lower()} "
            f"within the organization. All employees must review and acknowledge this policy.")


def populate_test_data(store, auth: AuthClient, policy_count: int = DEFAULT_POLICY_COUNT,
                       groups: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    groups = groups if groups is not None else TEST_GROUPS
    logging.info("Starting data population...")
    _remove_demo_data(store, auth, groups)

    user_index = 1
    all_user_ids: List[str] = []
    for group_def in groups:
        group = policy_repo.create_group(store, group_def["name"], group_def["description"])
        role = "admin" if group_def["name"] == "Admin" else "employee"
        member_ids: List[str] = []

        for i in range(group_def["user_count"]):
            email = f"user{user_index}@{TEST_USER_DOMAIN}"
            full_name = f"{group_def['name']} User {i + 1}"
            user_index += 1
            user_id = _create_demo_user(auth, email, full_name)
            if not user_id:
                continue
            store.update("profiles", {"full_name": full_name, "department": group_def["name"], "role": role},
                         {"id": eq(user_id)})
            member_ids.append(user_id)

        if member_ids:
            store.insert("group_members", [{"group_id": group.id, "user_id": u} for u in member_ids])
        all_user_ids.extend(member_ids)
        logging.info(f"Added {len(member_ids)} members to {group_def['name']}")

    created_by = all_user_ids[0] if all_user_ids else None
    rows = []
    for i in range(policy_count):
        category = POLICY_CATEGORIES[i % len(POLICY_CATEGORIES)]
        rows.append({
            "title": policy_title(i, category),
            "description": policy_description(category),
            "category": category,
            "status": "published",
            "created_by": created_by,
        })
    for n, batch in enumerate(chunked(rows, POLICY_INSERT_BATCH), start=1):
        store.insert("policies", batch)
        logging.info(f"Created {min(n * POLICY_INSERT_BATCH, policy_count)} policies...")

    return {
        "message": "Test data populated successfully",
        "stats": {"groups": len(groups), "users": len(all_user_ids), "policies": policy_count},
        "loginInfo": {
            "message": f"You can login with any user. All passwords are: {DEMO_USER_PASSWORD}",
            "exampleUsers": [
                f"user1@{TEST_USER_DOMAIN} (Admin)",
                f"user11@{TEST_USER_DOMAIN} (Director)",
                f"user21@{TEST_USER_DOMAIN} (Executive Director)",
                f"user26@{TEST_USER_DOMAIN} (Supervisor Probation Officer)",
                f"user76@{TEST_USER_DOMAIN} (Probation Officer)",
            ],
        },
    }


def match_sample_file(title: Optional[str]) -> Optional[str]:
    lowered = (title or "").lower()
    for keyword, file_name in SAMPLE_POLICY_FILES.items():
        if keyword in lowered:
            return file_name
    return None


def upload_sample_policies(store, bucket: str = POLICY_BUCKET,
                           sample_dir: str = SAMPLE_POLICY_DIR) -> Dict[str, Any]:
    logging.info("Starting to upload sample policy documents...")
    uploaded = 0

    for policy in policy_repo.list_policies(store):
        file_name = match_sample_file(policy.title)
        if not file_name:
            continue

        path = os.path.join(sample_dir, file_name)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            logging.error(f"Could not read sample file {path}: {e}")
            continue

        key = build_policy_key(policy.id, file_name)
        try:
            file_url = store_object(key, data, content_type=PDF_CONTENT_TYPE, overwrite=True, container=bucket)
        except Exception as e:
            logging.error(f"Error uploading {key}: {e}")
            continue

        if policy.current_version_id:
            policy_repo.update_version_file(store, policy.current_version_id, file_name, len(data), file_url)
        else:
            version = policy_repo.create_version(
                store, policy.id, 1, file_name, len(data), file_url,
                change_summary="Initial version uploaded with sample document",
            )
            policy_repo.set_current_version(store, policy.id, version.id)

        uploaded += 1
        logging.info(f"Uploaded {file_name} for {policy.title}")

    return {"message": f"Uploaded {uploaded} policy documents", "uploadedCount": uploaded}
