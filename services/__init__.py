# services/__init__.py
from .errors import DocumentParseError, RenderError
from .rest_store import RestStore, get_store
from .storage import store_object, upload_and_sas, save_local_and_url
from .approval_status import compute_approval_status, load_approval_status
from .policy_formatter import (
    extract_policy_meta,
    make_pdf_name,
    normalize_policy_html,
    wrap_with_policy_template,
)
from .pdf_renderer import render_pdf
from .policy_export import export_policy_pdf, prepare_policy_document
from .html_converter import html_to_docx_bytes

__all__ = [
    "DocumentParseError",
    "RenderError",
    "RestStore",
    "get_store",
    "store_object",
    "upload_and_sas",
    "save_local_and_url",
    "compute_approval_status",
    "load_approval_status",
    "extract_policy_meta",
    "make_pdf_name",
    "normalize_policy_html",
    "wrap_with_policy_template",
    "render_pdf",
    "export_policy_pdf",
    "prepare_policy_document",
    "html_to_docx_bytes",
]
