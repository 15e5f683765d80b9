# services/identity.py
"""
Caller identity against the hosted auth service (GoTrue-style REST API).

Tokens are verified by asking the auth service who they belong to; the role
comes from the caller's row in ``profiles``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests
from fastapi import Depends, Header, HTTPException

from config import AUTH_BASE, STORE_TIMEOUT_SECONDS, SUPABASE_ANON_KEY, SUPABASE_SERVICE_ROLE_KEY
from services import policy_repo
from services.rest_store import get_store

logging.basicConfig(level=logging.INFO)


@dataclass
class CallerIdentity:
    user_id: str
    role: str


class AuthClient:
    def __init__(self, auth_base: str, api_key: str, timeout: int = STORE_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        if not api_key:
            raise HTTPException(500, "Auth API key not configured on the policy service")
        self.auth_base = auth_base.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, bearer: Optional[str] = None) -> Dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer or self.api_key}",
            "Content-Type": "application/json",
        }

    def get_user(self, token: str) -> Optional[Dict[str, Any]]:
        """Claims for a bearer token, or None when the auth service rejects it."""
        try:
            r = self.session.get(f"{self.auth_base}/user", headers=self._headers(token), timeout=self.timeout)
        except requests.RequestException as e:
            logging.error(f"Auth lookup failed: {e}")
            raise HTTPException(502, f"Auth service unavailable: {e}") from e
        if r.status_code in (401, 403):
            return None
        if not r.ok:
            logging.error(f"Auth lookup failed ({r.status_code}): {r.text}")
            raise HTTPException(502, f"Auth service error: {r.status_code}")
        return r.json()

    def _admin(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.auth_base}/admin/{path.lstrip('/')}"
        r = None
        try:
            r = self.session.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
            r.raise_for_status()
            return r
        except requests.HTTPError as e:
            status = r.status_code if r is not None else 500
            raise HTTPException(status, f"Auth {method} {path} failed: {getattr(r, 'text', '')}") from e
        except requests.RequestException as e:
            raise HTTPException(502, f"Auth {method} {path} failed: {e}") from e

    def create_user(self, email: str, password: str, full_name: str) -> Dict[str, Any]:
        r = self._admin("POST", "users", json={
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": {"full_name": full_name},
        })
        return r.json()

    def delete_user(self, user_id: str) -> None:
        self._admin("DELETE", f"users/{user_id}")

    def list_users(self, per_page: int = 1000) -> List[Dict[str, Any]]:
        users: List[Dict[str, Any]] = []
        page = 1
        while True:
            body = self._admin("GET", "users", params={"page": page, "per_page": per_page}).json()
            batch = body.get("users", []) if isinstance(body, dict) else body
            users.extend(batch)
            if len(batch) < per_page:
                return users
            page += 1


def get_auth_client() -> AuthClient:
    """FastAPI dependency: admin-capable client used for both token checks and user management."""
    return AuthClient(AUTH_BASE, SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY)


def bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(401, "Unauthorized")
    token = authorization[len("Bearer "):].strip()
    if not token:
        raise HTTPException(401, "Unauthorized")
    return token


def require_bearer(authorization: Optional[str] = Header(None)) -> str:
    """Token from the Authorization header, resolved ahead of the store and auth clients."""
    return bearer_token(authorization)


def resolve_caller(store, auth: AuthClient, token: str, roles) -> CallerIdentity:
    user = auth.get_user(token)
    if not user or not user.get("id"):
        logging.warning("Rejected bearer token")
        raise HTTPException(401, "Unauthorized")

    profile = policy_repo.get_profile(store, user["id"])
    role = profile.role if profile else None
    if role not in roles:
        logging.warning(f"Forbidden: user {user['id']} has role {role!r}")
        raise HTTPException(403, f"Forbidden: {' or '.join(roles)} role required")
    return CallerIdentity(user_id=user["id"], role=role)


def require_roles(*roles: str):
    """Dependency factory: ``Depends(require_roles("admin"))`` yields the caller or raises 401/403."""
    def dependency(
        token: str = Depends(require_bearer),
        store=Depends(get_store),
        auth: AuthClient = Depends(get_auth_client),
    ) -> CallerIdentity:
        return resolve_caller(store, auth, token, roles)

    return dependency


require_policy_manager = require_roles("admin", "publisher")
require_admin = require_roles("admin")
