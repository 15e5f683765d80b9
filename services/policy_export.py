# services/policy_export.py
"""
Upload pipeline: .docx -> normalized HTML -> wrapped page -> PDF -> storage -> policy rows.

Stages run strictly in order. The store writes after the upload are not
transactional: if a later step fails the caller sees one failure, and objects
or rows written by earlier steps stay where they are.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from models.entities import Policy, PolicyVersion
from services import policy_repo
from services.docx_reader import docx_to_html, docx_to_raw_text, ensure_docx_filename
from services.pdf_renderer import render_pdf
from services.policy_formatter import (
    PolicyMeta,
    extract_policy_meta,
    make_pdf_name,
    normalize_policy_html,
    wrap_with_policy_template,
)
from services.storage import PDF_CONTENT_TYPE, build_export_key, store_object
from utils.text_utils import file_stem

logging.basicConfig(level=logging.INFO)

EMPTY_BODY_HTML = "<p>(No content parsed)</p>"


@dataclass
class PreparedDocument:
    filename: str
    meta: PolicyMeta
    body_html: str
    messages: List[str] = field(default_factory=list)


@dataclass
class ExportResult:
    file_name: str
    storage_key: str
    file_url: str
    file_size: int
    policy: Optional[Policy] = None
    version: Optional[PolicyVersion] = None


def prepare_policy_document(filename: str, data: bytes) -> PreparedDocument:
    """Parse stages: metadata from the raw text, normalized body from the structural HTML."""
    ensure_docx_filename(filename)
    converted = docx_to_html(data)
    raw_text = docx_to_raw_text(data)
    meta = extract_policy_meta(raw_text)
    logging.info(f"Parsed {filename}: section={meta.section!r} number={meta.number!r} subject={meta.subject!r}")
    return PreparedDocument(
        filename=filename,
        meta=meta,
        body_html=normalize_policy_html(converted.html),
        messages=converted.messages,
    )


def apply_meta_overrides(meta: PolicyMeta, section: Optional[str] = None, number: Optional[str] = None,
                         subject: Optional[str] = None) -> PolicyMeta:
    """User edits from the review step win over extracted values; None means 'not edited'."""
    return PolicyMeta(
        section=meta.section if section is None else section.strip(),
        number=meta.number if number is None else number.strip(),
        subject=meta.subject if subject is None else subject.strip(),
    )


def build_policy_pdf(prepared: PreparedDocument, meta: PolicyMeta) -> bytes:
    html_str = wrap_with_policy_template(
        section=meta.section,
        number=meta.number,
        subject=meta.subject,
        body_html=prepared.body_html or EMPTY_BODY_HTML,
    )
    return render_pdf(html_str)


def derived_policy_title(prepared: PreparedDocument, meta: PolicyMeta) -> str:
    return meta.subject or file_stem(prepared.filename) or "Untitled Policy"


def export_policy_pdf(store, prepared: PreparedDocument, overrides: Optional[Dict[str, Optional[str]]] = None,
                      policy_id: Optional[str] = None, version_number: int = 1,
                      create_policy: bool = False, uploaded_by: Optional[str] = None,
                      now: Optional[datetime] = None) -> ExportResult:
    meta = apply_meta_overrides(prepared.meta, **(overrides or {}))

    pdf_bytes = build_policy_pdf(prepared, meta)
    pdf_name = make_pdf_name(prepared.filename, meta.number, meta.subject)

    key = build_export_key(pdf_name, now)
    file_url = store_object(key, pdf_bytes, content_type=PDF_CONTENT_TYPE, overwrite=False)
    logging.info(f"Uploaded formatted policy to {key}")

    result = ExportResult(file_name=pdf_name, storage_key=key, file_url=file_url, file_size=len(pdf_bytes))

    if not policy_id and create_policy:
        policy = policy_repo.create_policy(
            store,
            title=derived_policy_title(prepared, meta),
            category=meta.section or None,
            created_by=uploaded_by,
        )
        policy_id = policy.id
        result.policy = policy

    if policy_id:
        version = policy_repo.create_version(
            store,
            policy_id=policy_id,
            version_number=version_number,
            file_name=pdf_name,
            file_size=len(pdf_bytes),
            file_url=file_url,
        )
        policy_repo.set_current_version(store, policy_id, version.id)
        result.version = version
        if result.policy is None:
            result.policy = policy_repo.get_policy(store, policy_id)

    return result
