# services/rest_store.py
import logging
from typing import Dict, List, Any, Iterable, Optional

import requests
from fastapi import HTTPException

from config import REST_BASE, SUPABASE_SERVICE_ROLE_KEY, STORE_TIMEOUT_SECONDS

logging.basicConfig(level=logging.INFO)


def eq(value: Any) -> str:
    return f"eq.{value}"


def neq(value: Any) -> str:
    return f"neq.{value}"


def ilike(value: str) -> str:
    return f"ilike.{value}"


def in_list(values: Iterable[Any]) -> str:
    inner = ",".join(str(v) for v in values)
    return f"in.({inner})"


class RestStore:
    """Thin client for the PostgREST tables behind the portal.

    Constructed explicitly and handed to the services that need it, so tests
    can pass a fake with the same ``select/insert/update/delete/count`` surface.
    """

    def __init__(self, base_url: str, api_key: str, bearer_token: Optional[str] = None,
                 timeout: int = STORE_TIMEOUT_SECONDS, session: Optional[requests.Session] = None):
        if not api_key:
            raise HTTPException(500, "Store API key not configured on the policy service")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Authorization": f"Bearer {bearer_token or api_key}",
            "Accept": "application/json",
        })

    def _request(self, method: str, table: str, *, params=None, json=None, headers=None) -> requests.Response:
        url = f"{self.base_url}/{table.lstrip('/')}"
        r = None
        try:
            r = self.session.request(method, url, params=params, json=json,
                                     headers=headers, timeout=self.timeout)
            r.raise_for_status()
            return r
        except requests.HTTPError as e:
            status = r.status_code if r is not None else 500
            logging.error(f"Store {method} {table} failed ({status}): {getattr(r, 'text', '')}")
            raise HTTPException(status, f"Store {method} {table} failed: {getattr(r, 'text', '')}") from e
        except Exception as e:
            logging.error(f"Store {method} {table} failed: {e}")
            raise HTTPException(500, f"Store {method} {table} failed: {e}") from e

    def select(self, table: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._request("GET", table, params=params or {"select": "*"}).json()

    def insert(self, table: str, rows) -> List[Dict[str, Any]]:
        r = self._request("POST", table, json=rows,
                          headers={"Prefer": "return=representation"})
        return r.json()

    def update(self, table: str, values: Dict[str, Any], params: Dict[str, Any]) -> List[Dict[str, Any]]:
        r = self._request("PATCH", table, params=params, json=values,
                          headers={"Prefer": "return=representation"})
        return r.json()

    def delete(self, table: str, params: Dict[str, Any]) -> None:
        self._request("DELETE", table, params=params)

    def count(self, table: str, params: Optional[Dict[str, Any]] = None) -> int:
        query = dict(params or {})
        query.setdefault("select", "id")
        r = self._request("HEAD", table, params=query,
                          headers={"Prefer": "count=exact", "Range-Unit": "items"})
        # Content-Range looks like "0-24/317" or "*/0"
        content_range = r.headers.get("Content-Range", "")
        total = content_range.rsplit("/", 1)[-1]
        return int(total) if total.isdigit() else 0


def get_store() -> RestStore:
    """FastAPI dependency: service-role store used by the API routes."""
    return RestStore(REST_BASE, SUPABASE_SERVICE_ROLE_KEY)
