# tests/test_routes.py
"""Tests for API routes."""

import pytest
from io import BytesIO
from unittest.mock import patch
from docx import Document
from fastapi import HTTPException
from fastapi.testclient import TestClient

from conftest import FakeAuth
from services.errors import RenderError
from services.identity import get_auth_client
from services.rest_store import get_store

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
ADMIN = {"Authorization": "Bearer t-admin"}
PUBLISHER = {"Authorization": "Bearer t-pub"}
EMPLOYEE = {"Authorization": "Bearer t-emp"}


@pytest.fixture
def store(approval_store):
    approval_store.tables["profiles"].extend([
        {"id": "admin-1", "role": "admin"},
        {"id": "pub-1", "role": "publisher"},
        {"id": "emp-1", "role": "employee"},
    ])
    return approval_store


@pytest.fixture
def auth(store):
    return FakeAuth(tokens={"t-admin": "admin-1", "t-pub": "pub-1", "t-emp": "emp-1"}, store=store)


@pytest.fixture
def client(store, auth):
    from main import app
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_auth_client] = lambda: auth
    yield TestClient(app)
    app.dependency_overrides.clear()


def _upload(data, name="Remote Work.docx"):
    return {"file": (name, data, DOCX_TYPE)}


class TestHealthzRoute:
    """Tests for /healthz endpoint."""

    def test_healthz_returns_ok(self, test_client):
        """Test healthz endpoint returns ok status."""
        response = test_client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert "time" in data


class TestLocalFileRoute:
    """Tests for /local/{path} endpoint."""

    def test_serves_saved_file(self, test_client, tmp_path):
        """Test locally stored objects are served with their media type."""
        (tmp_path / "formatted").mkdir()
        (tmp_path / "formatted" / "1_a.pdf").write_bytes(b"%PDF-1.4")
        with patch('routes.system_routes.LOCAL_SAVE_DIR', str(tmp_path)):
            response = test_client.get("/local/formatted/1_a.pdf")
        assert response.status_code == 200
        assert response.content == b"%PDF-1.4"
        assert response.headers["content-type"] == "application/pdf"

    def test_missing_file(self, test_client, tmp_path):
        """Test unknown paths give 404."""
        with patch('routes.system_routes.LOCAL_SAVE_DIR', str(tmp_path)):
            assert test_client.get("/local/nope.pdf").status_code == 404


class TestApprovalStatusRoute:
    """Tests for GET /policies/{id}/approval-status."""

    def test_requires_token(self, client):
        """Test a missing bearer token gives 401."""
        assert client.get("/policies/p1/approval-status").status_code == 401

    @pytest.mark.parametrize("path", ["/policies/p1/approval-status", "/admin/upload-sample-policies"])
    def test_missing_token_checked_before_clients(self, path):
        """Without a token the answer is 401 even when the store and auth keys are unset."""
        from main import app

        def unconfigured():
            raise HTTPException(500, "API key not configured")

        app.dependency_overrides[get_store] = unconfigured
        app.dependency_overrides[get_auth_client] = unconfigured
        try:
            test_client = TestClient(app)
            send = test_client.post if path.startswith("/admin") else test_client.get
            assert send(path).status_code == 401
        finally:
            app.dependency_overrides.clear()

    def test_requires_manager_role(self, client):
        """Test employees are forbidden."""
        assert client.get("/policies/p1/approval-status", headers=EMPLOYEE).status_code == 403

    def test_returns_stats(self, client):
        """Test the camelCase status payload."""
        response = client.get("/policies/p1/approval-status", headers=PUBLISHER)
        assert response.status_code == 200
        body = response.json()
        assert body["policyId"] == "p1"
        assert body["currentVersionId"] == "v2"
        assert body["stats"]["totalAssigned"] == 10
        assert body["stats"]["completed"] == 6
        assert body["completionPercentage"] == 60
        assert body["recentAttestations"][0]["user_id"] == "u8"


class TestFormatRoutes:
    """Tests for the /policies/format endpoints."""

    def test_preview(self, client, policy_docx):
        """Test preview returns metadata, file name and both HTML forms."""
        response = client.post("/policies/format/preview", files=_upload(policy_docx), headers=PUBLISHER)
        assert response.status_code == 200
        body = response.json()
        assert body["meta"] == {"section": "Human Resources", "number": "8.1",
                                "subject": "Remote Work: Guidelines!"}
        assert body["pdf_name"] == "8.1_Remote_Work_Guidelines.pdf"
        assert "<h2>Procedures</h2>" in body["body_html"]
        assert 'class="header"' in body["page_html"]

    def test_preview_rejects_non_docx(self, client):
        """Test other file types give 400."""
        response = client.post("/policies/format/preview", files=_upload(b"x", "policy.pdf"), headers=PUBLISHER)
        assert response.status_code == 400
        assert response.json()["detail"] == "Please select a .docx file"

    def test_preview_unreadable_docx(self, client):
        """Test a corrupt .docx gives 422 with a generic message."""
        response = client.post("/policies/format/preview", files=_upload(b"garbage"), headers=PUBLISHER)
        assert response.status_code == 422
        assert response.json()["detail"] == "Failed to parse the .docx file"

    def test_pdf_download(self, client, policy_docx):
        """Test the PDF comes back as an attachment named from the metadata."""
        response = client.post("/policies/format/pdf", files=_upload(policy_docx),
                               data={"subject": "Telework"}, headers=PUBLISHER)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert "8.1_Telework.pdf" in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_pdf_render_failure(self, client, policy_docx):
        """Test rendering failures give 500 with a generic message."""
        with patch("services.policy_export.render_pdf", side_effect=RenderError("boom")):
            response = client.post("/policies/format/pdf", files=_upload(policy_docx), headers=PUBLISHER)
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to convert the document to PDF"

    def test_upload_creates_policy(self, client, store, policy_docx):
        """Test upload stores the PDF and records a new policy and version."""
        with patch("services.policy_export.store_object", return_value="http://files/x.pdf"):
            response = client.post("/policies/format/upload", files=_upload(policy_docx),
                                   data={"create_policy": "true"}, headers=PUBLISHER)
        assert response.status_code == 200
        body = response.json()
        assert body["url"] == "http://files/x.pdf"
        assert body["file_name"] == "8.1_Remote_Work_Guidelines.pdf"
        assert body["storage_key"].startswith("formatted/")
        assert body["version_number"] == 1
        created = next(p for p in store.tables["policies"] if p["id"] == body["policy_id"])
        assert created["current_version_id"] == body["version_id"]
        assert created["created_by"] == "pub-1"

    def test_upload_requires_role(self, client, policy_docx):
        """Test employees cannot upload."""
        response = client.post("/policies/format/upload", files=_upload(policy_docx), headers=EMPLOYEE)
        assert response.status_code == 403


class TestPolicyEditRoutes:
    """Tests for PATCH/DELETE /policies/{id}."""

    def test_patch_status(self, client, store):
        """Test status updates are saved."""
        response = client.patch("/policies/p1", json={"status": "archived"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["policy"]["status"] == "archived"

    def test_patch_invalid_status(self, client):
        """Test unknown statuses give 400."""
        assert client.patch("/policies/p1", json={"status": "gone"}, headers=ADMIN).status_code == 400

    def test_delete(self, client, store):
        """Test deletion removes the policy and its versions."""
        response = client.delete("/policies/p1", headers=ADMIN)
        assert response.status_code == 200
        assert store.tables["policies"] == []
        assert store.tables["policy_versions"] == []

    def test_delete_missing(self, client):
        """Test deleting an unknown policy gives 404."""
        assert client.delete("/policies/nope", headers=ADMIN).status_code == 404


class TestAdminRoutes:
    """Tests for the /admin endpoints."""

    def test_add_users(self, client, store):
        """Test add-users answers success with the created users."""
        response = client.post("/admin/add-users-to-group", json={"groupName": "Reviewers", "numberOfUsers": 2},
                               headers=PUBLISHER)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["users"]) == 2

    def test_add_users_validation(self, client):
        """Test invalid bodies give the 422 error shape."""
        response = client.post("/admin/add-users-to-group", json={"numberOfUsers": 0}, headers=PUBLISHER)
        assert response.status_code == 422
        assert response.json()["ok"] is False

    def test_cleanup_is_admin_only(self, client):
        """Test publishers cannot run cleanup."""
        assert client.post("/admin/cleanup-users", headers=PUBLISHER).status_code == 403

    def test_cleanup_keeps_caller(self, client, store):
        """Test cleanup removes everyone but the calling admin."""
        response = client.post("/admin/cleanup-users", headers=ADMIN)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert [p["id"] for p in store.tables["profiles"]] == ["admin-1"]

    def test_internal_error_hidden(self, client):
        """Test unexpected failures answer the generic 500 body."""
        with patch("services.admin_ops.populate_test_data", side_effect=RuntimeError("db password wrong")):
            response = client.post("/admin/populate-test-data", json={"policyCount": 1}, headers=ADMIN)
        assert response.status_code == 500
        assert response.json() == {"error": "An internal error occurred"}


class TestBriefRoutes:
    """Tests for the /briefs endpoints."""

    def test_template(self, test_client):
        """Test the starter template is returned."""
        body = test_client.get("/briefs/template").json()
        assert body["title"] == "PPDU Brief"
        assert "<h2>Recommendation</h2>" in body["html"]

    def test_import(self, test_client, policy_docx):
        """Test an uploaded .docx comes back as editor HTML."""
        response = test_client.post("/briefs/import", files=_upload(policy_docx, "Budget Brief.docx"))
        assert response.status_code == 200
        assert response.json()["title"] == "Budget Brief"

    def test_export(self, test_client):
        """Test the brief downloads as .docx."""
        response = test_client.post("/briefs/export", json={"title": "Budget Brief", "html": "<p>Issue</p>"})
        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_TYPE
        assert "Budget_Brief.docx" in response.headers["content-disposition"]
        doc = Document(BytesIO(response.content))
        assert doc.paragraphs[0].text == "Issue"

    def test_intake_form_html(self, test_client):
        """Test the intake form renders as HTML by default."""
        response = test_client.post("/briefs/intake-form", json={"projectName": "Apex"})
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Apex" in response.text

    def test_intake_form_docx(self, test_client):
        """Test the intake form downloads as .docx."""
        response = test_client.post("/briefs/intake-form?format=docx", json={"projectName": "Apex"})
        assert response.status_code == 200
        assert "Apex_Intake_Form.docx" in response.headers["content-disposition"]

    def test_intake_form_bad_format(self, test_client):
        """Test unknown formats give 400."""
        assert test_client.post("/briefs/intake-form?format=pdf", json={}).status_code == 400


class TestOfficeRoutes:
    """Tests for the /office endpoints."""

    def test_requires_graph_token(self, test_client):
        """Test a missing X-Graph-Token gives 401."""
        assert test_client.get("/office/documents").status_code == 401

    def test_list_documents(self, test_client):
        """Test documents are listed with embed URLs."""
        docs = [{"id": "d1", "name": "A.docx", "webUrl": "https://x/view.aspx", "embedUrl": "https://x/embed"}]
        with patch("routes.office_routes.GraphClient") as mock_graph:
            mock_graph.return_value.list_word_documents.return_value = docs
            response = test_client.get("/office/documents", headers={"X-Graph-Token": "ms-token"})
        assert response.status_code == 200
        assert response.json() == docs
        mock_graph.assert_called_once_with("ms-token")

    def test_create_document(self, test_client):
        """Test a named document is created."""
        doc = {"id": "d2", "name": "Brief.docx", "webUrl": None, "embedUrl": None}
        with patch("routes.office_routes.GraphClient") as mock_graph:
            mock_graph.return_value.create_word_document.return_value = doc
            response = test_client.post("/office/documents", json={"name": "Brief"},
                                        headers={"X-Graph-Token": "ms-token"})
        assert response.status_code == 200
        assert response.json()["name"] == "Brief.docx"
        mock_graph.return_value.create_word_document.assert_called_once_with("Brief")
