# tests/conftest.py
"""
Pytest configuration and fixtures for the Policy Proof Hub test suite.
"""

import os
import re
import sys
import uuid
import pytest
from io import BytesIO

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi import HTTPException
from fastapi.testclient import TestClient

RESERVED_PARAMS = {"select", "order", "limit"}


def _split_in(inner):
    return {v.strip().strip('"') for v in inner.split(",")}


def _matches(row, column, expr):
    value = row.get(column)
    expr = str(expr)
    if expr == "is.null":
        return value is None
    if expr == "not.is.null":
        return value is not None
    if value is None:
        return False
    if expr.startswith("eq."):
        return str(value) == expr[3:]
    if expr.startswith("neq."):
        return str(value) != expr[4:]
    if expr.startswith("ilike."):
        pattern = re.escape(expr[6:]).replace("%", ".*")
        return re.fullmatch(pattern, str(value), re.IGNORECASE) is not None
    if expr.startswith("in.(") and expr.endswith(")"):
        return str(value) in _split_in(expr[4:-1])
    raise AssertionError(f"Unsupported filter {column}={expr}")


class FakeStore:
    """In-memory stand-in for RestStore with the PostgREST filter subset the services use."""

    def __init__(self, tables=None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}
        self.calls = []

    def _rows(self, table):
        return self.tables.setdefault(table, [])

    def _filter(self, table, params):
        rows = self._rows(table)
        filters = {k: v for k, v in (params or {}).items() if k not in RESERVED_PARAMS}
        return [r for r in rows if all(_matches(r, col, expr) for col, expr in filters.items())]

    def select(self, table, params=None):
        self.calls.append(("select", table, params))
        params = params or {}
        rows = self._filter(table, params)
        order = params.get("order")
        if order:
            column, _, direction = order.partition(".")
            rows = sorted(rows, key=lambda r: (r.get(column) is None, r.get(column) or ""),
                          reverse=direction == "desc")
        if params.get("limit"):
            rows = rows[: int(params["limit"])]
        columns = params.get("select", "*")
        if columns == "*":
            return [dict(r) for r in rows]
        names = [c.strip() for c in columns.split(",")]
        return [{n: r.get(n) for n in names} for r in rows]

    def insert(self, table, rows):
        self.calls.append(("insert", table, rows))
        batch = rows if isinstance(rows, list) else [rows]
        out = []
        for row in batch:
            stored = dict(row)
            stored.setdefault("id", uuid.uuid4().hex)
            self._rows(table).append(stored)
            out.append(dict(stored))
        return out

    def update(self, table, values, params):
        self.calls.append(("update", table, params))
        out = []
        for row in self._filter(table, params):
            row.update(values)
            out.append(dict(row))
        return out

    def delete(self, table, params):
        self.calls.append(("delete", table, params))
        doomed = self._filter(table, params)
        self.tables[table] = [r for r in self._rows(table) if r not in doomed]

    def count(self, table, params=None):
        self.calls.append(("count", table, params))
        return len(self._filter(table, params))

    def deleted_tables(self):
        return [table for method, table, _ in self.calls if method == "delete"]


class FakeAuth:
    """Stand-in for AuthClient. With a store it mimics the signup trigger that creates profiles."""

    def __init__(self, users=None, tokens=None, store=None, fail_emails=()):
        self.users = [dict(u) for u in (users or [])]
        self.tokens = dict(tokens or {})
        self.store = store
        self.fail_emails = set(fail_emails)
        self.deleted = []

    def get_user(self, token):
        user_id = self.tokens.get(token)
        return {"id": user_id} if user_id else None

    def create_user(self, email, password, full_name):
        if email in self.fail_emails:
            raise HTTPException(500, f"Auth POST users failed: {email}")
        if any(u["email"] == email for u in self.users):
            raise HTTPException(422, "A user with this email address has already been registered")
        user = {"id": uuid.uuid4().hex, "email": email, "user_metadata": {"full_name": full_name}}
        self.users.append(user)
        if self.store is not None:
            self.store.insert("profiles", {"id": user["id"], "email": email, "full_name": full_name,
                                           "role": "employee"})
        return dict(user)

    def delete_user(self, user_id):
        self.users = [u for u in self.users if u["id"] != user_id]
        self.deleted.append(user_id)

    def list_users(self, per_page=1000):
        return [dict(u) for u in self.users]


def is_cant_split(row):
    """True when the row carries Word's <w:cantSplit/>."""
    from docx.oxml.ns import qn

    trPr = row._tr.trPr
    return trPr is not None and trPr.find(qn("w:cantSplit")) is not None


def build_docx(paragraphs=(), bullets=(), table=None, heading=None):
    """Build .docx bytes; paragraphs are strings or (text, bold) tuples."""
    from docx import Document

    doc = Document()
    if heading:
        doc.add_heading(heading, level=1)
    for item in paragraphs:
        text, bold = item if isinstance(item, tuple) else (item, False)
        p = doc.add_paragraph()
        p.add_run(text).bold = bold
    for text in bullets:
        doc.add_paragraph(text, style="List Bullet")
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    bio = BytesIO()
    doc.save(bio)
    return bio.getvalue()


@pytest.fixture
def test_client():
    """Create a FastAPI test client."""
    from main import app
    return TestClient(app)


@pytest.fixture
def fake_store():
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def policy_docx():
    """A policy document carrying the SECTION/NUMBER/SUBJECT block and Word artifacts."""
    return build_docx(
        paragraphs=[
            "SECTION: Human Resources",
            "NUMBER: 8.1",
            "SUBJECT: Remote Work: Guidelines!",
            "Classification: Protected A",
            ("PROCEDURES", True),
            "Employees may work remotely with manager approval.",
        ],
        bullets=["Use the VPN", "Lock your screen"],
    )


@pytest.fixture
def approval_store():
    """
    Policy p1 on version v2 with ten assigned users:
    u1-u4 directly (due in the past), u5-u10 through group g1 (due in the future).
    u3-u8 attested v2; u1 also attested the superseded v1; u99 attested but was never assigned.
    """
    past, future = "2024-01-01", "2099-01-01"
    assignments = [
        {"id": f"a{i}", "policy_id": "p1", "user_id": f"u{i}", "group_id": None, "due_date": past}
        for i in range(1, 5)
    ]
    assignments.append({"id": "ag", "policy_id": "p1", "user_id": None, "group_id": "g1", "due_date": future})
    attestations = [
        {"id": f"t{i}", "user_id": f"u{i}", "policy_version_id": "v2", "signed_at": f"2024-05-0{i}T10:00:00Z"}
        for i in range(3, 9)
    ]
    attestations.append({"id": "t-old", "user_id": "u1", "policy_version_id": "v1",
                         "signed_at": "2023-01-01T00:00:00Z"})
    attestations.append({"id": "t-x", "user_id": "u99", "policy_version_id": "v2",
                         "signed_at": "2024-04-01T00:00:00Z"})
    return FakeStore({
        "policies": [{"id": "p1", "title": "Remote Work", "status": "published", "current_version_id": "v2"}],
        "policy_versions": [
            {"id": "v1", "policy_id": "p1", "version_number": 1},
            {"id": "v2", "policy_id": "p1", "version_number": 2},
        ],
        "policy_assignments": assignments,
        "group_members": [{"group_id": "g1", "user_id": f"u{i}"} for i in range(5, 11)],
        "attestations": attestations,
        "profiles": [{"id": f"u{i}", "full_name": f"User {i}", "email": f"u{i}@example.com",
                      "role": "employee"} for i in range(1, 11)],
    })
