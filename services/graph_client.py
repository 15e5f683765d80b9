# services/graph_client.py
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from fastapi import HTTPException

from config import GRAPH_BASE, STORE_TIMEOUT_SECONDS
from services.storage import DOCX_CONTENT_TYPE

logging.basicConfig(level=logging.INFO)


def embed_url(web_url: Optional[str]) -> Optional[str]:
    """OneDrive/SharePoint view URL -> URL that can sit in an iframe."""
    if not web_url:
        return web_url
    return web_url.replace("view.aspx", "embed")


def docx_name(name: str) -> str:
    name = (name or "").strip()
    return name if name.lower().endswith(".docx") else f"{name}.docx"


def drive_item(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": raw.get("id"),
        "name": raw.get("name"),
        "webUrl": raw.get("webUrl"),
        "embedUrl": embed_url(raw.get("webUrl")),
    }


class GraphClient:
    """Calls Microsoft Graph on behalf of the signed-in Microsoft user whose token is forwarded."""

    def __init__(self, access_token: str, base_url: str = GRAPH_BASE, timeout: int = STORE_TIMEOUT_SECONDS,
                 session: Optional[requests.Session] = None):
        if not access_token:
            raise HTTPException(401, "Microsoft access token required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {access_token}"})

    def _call(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logging.error(f"Graph {method} {path} failed: {e}")
            raise HTTPException(502, f"Graph API unavailable: {e}") from e
        if not r.ok:
            logging.error(f"Graph {method} {path} failed ({r.status_code}): {r.text}")
            raise HTTPException(502, f"Graph API error: {r.status_code} - {r.text}")
        return r.json() if r.content else {}

    def create_word_document(self, name: str) -> Dict[str, Any]:
        file_name = docx_name(name)
        raw = self._call(
            "PUT",
            f"/me/drive/root:/{quote(file_name)}:/content",
            data=b"",
            headers={"Content-Type": DOCX_CONTENT_TYPE},
        )
        logging.info(f"Created Word document {file_name} ({raw.get('id')})")
        return drive_item(raw)

    def list_word_documents(self) -> List[Dict[str, Any]]:
        raw = self._call(
            "GET",
            "/me/drive/root/search(q='.docx')",
            params={"$select": "id,name,webUrl"},
        )
        return [drive_item(item) for item in raw.get("value", [])]
