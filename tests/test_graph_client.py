# tests/test_graph_client.py
"""Tests for the Microsoft Graph Word document client."""

import pytest
import requests
from unittest.mock import MagicMock
from fastapi import HTTPException

from services.graph_client import GraphClient, docx_name, embed_url


def _response(status=200, body=None):
    r = MagicMock()
    r.status_code = status
    r.ok = status < 400
    r.content = b"{}" if body is not None else b""
    r.json.return_value = body
    r.text = str(body)
    return r


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


class TestHelpers:
    """Tests for Graph helper functions."""

    def test_embed_url(self):
        """view.aspx links become embeddable."""
        assert embed_url("https://x.sharepoint.com/_layouts/15/Doc.aspx?action=view.aspx") \
            == "https://x.sharepoint.com/_layouts/15/Doc.aspx?action=embed"
        assert embed_url(None) is None

    def test_docx_name(self):
        """.docx is appended once."""
        assert docx_name(" Brief ") == "Brief.docx"
        assert docx_name("Brief.DOCX") == "Brief.DOCX"


class TestGraphClient:
    """Tests for GraphClient class."""

    def test_requires_token(self):
        """A missing Microsoft token gives 401."""
        with pytest.raises(HTTPException) as exc:
            GraphClient(None)
        assert exc.value.status_code == 401

    def test_create_word_document(self, session):
        """An empty file is PUT under the drive root."""
        session.request.return_value = _response(201, {"id": "d1", "name": "Brief.docx",
                                                       "webUrl": "https://x/view.aspx?id=1"})
        doc = GraphClient("tok", base_url="https://graph/v1.0", session=session).create_word_document("Brief")
        method, url = session.request.call_args[0]
        assert method == "PUT"
        assert url == "https://graph/v1.0/me/drive/root:/Brief.docx:/content"
        assert session.request.call_args[1]["data"] == b""
        assert session.headers["Authorization"] == "Bearer tok"
        assert doc == {"id": "d1", "name": "Brief.docx", "webUrl": "https://x/view.aspx?id=1",
                       "embedUrl": "https://x/embed?id=1"}

    def test_list_word_documents(self, session):
        """Search results map to drive items."""
        session.request.return_value = _response(200, {"value": [
            {"id": "d1", "name": "A.docx", "webUrl": "https://x/a"},
            {"id": "d2", "name": "B.docx", "webUrl": "https://x/b"},
        ]})
        docs = GraphClient("tok", base_url="https://graph/v1.0", session=session).list_word_documents()
        assert [d["id"] for d in docs] == ["d1", "d2"]
        assert session.request.call_args[0][1] == "https://graph/v1.0/me/drive/root/search(q='.docx')"
        assert session.request.call_args[1]["params"] == {"$select": "id,name,webUrl"}

    def test_graph_error_is_502(self, session):
        """Graph errors are reported as 502."""
        session.request.return_value = _response(403, {"error": "denied"})
        with pytest.raises(HTTPException) as exc:
            GraphClient("tok", session=session).list_word_documents()
        assert exc.value.status_code == 502

    def test_transport_error_is_502(self, session):
        """Connection failures are reported as 502."""
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(HTTPException) as exc:
            GraphClient("tok", session=session).create_word_document("x")
        assert exc.value.status_code == 502
