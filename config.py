# config.py
import os

# Supabase (PostgREST + GoTrue) Configuration
SUPABASE_URL = os.getenv("SUPABASE_URL", "http://localhost:54321")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
REST_BASE = f"{SUPABASE_URL.rstrip('/')}/rest/v1"
AUTH_BASE = f"{SUPABASE_URL.rstrip('/')}/auth/v1"
STORE_TIMEOUT_SECONDS = int(os.getenv("STORE_TIMEOUT_SECONDS", "20"))

# Object Storage Configuration
POLICY_BUCKET = os.getenv("POLICY_BUCKET", "policy-documents")
AZURE_CONN_STR = os.getenv("AZURE_STORAGE_CONNECTION_STRING")  # optional
AZURITE_SAS_VERSION = os.getenv("AZURITE_SAS_VERSION", "2021-08-06")

# Local Storage Configuration
LOCAL_SAVE_DIR = os.getenv("LOCAL_SAVE_DIR", "./_out")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

# Document Export Configuration
PRODUCT_LABEL = os.getenv("PRODUCT_LABEL", "Policy Proof Hub")
RECENT_ATTESTATION_LIMIT = int(os.getenv("RECENT_ATTESTATION_LIMIT", "10"))

# Admin Utilities Configuration
ADMIN_BATCH_SIZE = int(os.getenv("ADMIN_BATCH_SIZE", "5"))
SAMPLE_POLICY_DIR = os.getenv("SAMPLE_POLICY_DIR", "./sample_policies")

# Microsoft Graph Configuration
GRAPH_BASE = os.getenv("GRAPH_BASE", "https://graph.microsoft.com/v1.0")

POLICY_STATUSES = ("draft", "review", "published", "archived")

# Paragraphs whose whole text is one of these become <h2> headings
SECTION_HEADINGS = (
    "POLICY STATEMENT",
    "DEFINITIONS",
    "STANDARDS",
    "PROCEDURES",
    "SCOPE",
    "PURPOSE",
    "BACKGROUND",
    "RESPONSIBILITIES",
)


# Demo data for the populate-test-data utility
TEST_USER_DOMAIN = "apex-demo.com"
TEST_GROUPS = [
    {"name": "Admin", "description": "Administrative staff", "user_count": 10},
    {"name": "Directors", "description": "Department directors", "user_count": 10},
    {"name": "Executive Directors", "description": "Executive leadership", "user_count": 5},
    {"name": "Supervisor Probation Officers", "description": "Supervisory staff", "user_count": 50},
    {"name": "Probation Officers", "description": "Front-line probation officers", "user_count": 221},
]
POLICY_CATEGORIES = [
    "Code of Conduct",
    "Data Security",
    "Remote Work",
    "Expense Reimbursement",
    "Leave Policy",
    "Health & Safety",
    "IT Security",
    "Procurement",
    "Training & Development",
    "Performance Management",
    "Client Relations",
    "Conflict of Interest",
    "Confidentiality",
    "Workplace Harassment",
    "Emergency Procedures",
]

# Title keyword -> sample PDF shipped in SAMPLE_POLICY_DIR
SAMPLE_POLICY_FILES = {
    "code of conduct": "code_of_conduct.pdf",
    "data": "data_security.pdf",
    "expense": "expense_reimbursement.pdf",
    "remote": "remote_work.pdf",
}
