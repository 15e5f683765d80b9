# routes/policy_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from models.entities import ApprovalStatus
from models.schemas import FormatPreviewResponse, FormatUploadResponse, PolicyMetaOut, PolicyUpdate
from services.approval_status import load_approval_status
from services.identity import CallerIdentity, require_policy_manager
from services.policy_admin import delete_policy, update_policy_category, update_policy_status
from services.policy_export import (
    apply_meta_overrides,
    build_policy_pdf,
    export_policy_pdf,
    prepare_policy_document,
)
from services.policy_formatter import make_pdf_name, wrap_with_policy_template
from services.rest_store import get_store
from services.storage import PDF_CONTENT_TYPE
from utils.text_utils import content_disposition

logging.basicConfig(level=logging.INFO)

router = APIRouter(prefix="/policies", tags=["policies"])


def _overrides(section: Optional[str], number: Optional[str], subject: Optional[str]):
    return {"section": section, "number": number, "subject": subject}


@router.get("/{policy_id}/approval-status", response_model=ApprovalStatus)
def approval_status(policy_id: str, caller: CallerIdentity = Depends(require_policy_manager),
                    store=Depends(get_store)):
    return load_approval_status(store, policy_id)


@router.post("/format/preview", response_model=FormatPreviewResponse)
async def format_preview(file: UploadFile = File(...),
                         caller: CallerIdentity = Depends(require_policy_manager)):
    data = await file.read()
    logging.info(f"Preview requested for {file.filename} ({len(data)} bytes)")
    prepared = prepare_policy_document(file.filename, data)
    meta = prepared.meta
    return FormatPreviewResponse(
        filename=prepared.filename,
        meta=PolicyMetaOut(**meta.to_dict()),
        pdf_name=make_pdf_name(prepared.filename, meta.number, meta.subject),
        body_html=prepared.body_html,
        page_html=wrap_with_policy_template(meta.section, meta.number, meta.subject, prepared.body_html),
        messages=prepared.messages,
    )


@router.post("/format/upload", response_model=FormatUploadResponse)
async def format_upload(
    file: UploadFile = File(...),
    section: Optional[str] = Form(None),
    number: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    policy_id: Optional[str] = Form(None),
    version_number: int = Form(1),
    create_policy: bool = Form(False),
    caller: CallerIdentity = Depends(require_policy_manager),
    store=Depends(get_store),
):
    data = await file.read()
    logging.info(f"Upload requested for {file.filename} ({len(data)} bytes) by {caller.user_id}")
    prepared = prepare_policy_document(file.filename, data)
    result = export_policy_pdf(
        store,
        prepared,
        overrides=_overrides(section, number, subject),
        policy_id=policy_id or None,
        version_number=version_number,
        create_policy=create_policy,
        uploaded_by=caller.user_id,
    )
    meta = apply_meta_overrides(prepared.meta, section, number, subject)
    return FormatUploadResponse(
        file_name=result.file_name,
        storage_key=result.storage_key,
        url=result.file_url,
        file_size=result.file_size,
        meta=PolicyMetaOut(**meta.to_dict()),
        policy_id=result.policy.id if result.policy else None,
        version_id=result.version.id if result.version else None,
        version_number=result.version.version_number if result.version else None,
    )


@router.post("/format/pdf")
async def format_pdf(
    file: UploadFile = File(...),
    section: Optional[str] = Form(None),
    number: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    caller: CallerIdentity = Depends(require_policy_manager),
):
    data = await file.read()
    prepared = prepare_policy_document(file.filename, data)
    meta = apply_meta_overrides(prepared.meta, section, number, subject)
    pdf_bytes = build_policy_pdf(prepared, meta)
    pdf_name = make_pdf_name(prepared.filename, meta.number, meta.subject)
    return Response(
        content=pdf_bytes,
        media_type=PDF_CONTENT_TYPE,
        headers={"Content-Disposition": content_disposition(pdf_name)},
    )


@router.patch("/{policy_id}")
def patch_policy(policy_id: str, req: PolicyUpdate, caller: CallerIdentity = Depends(require_policy_manager),
                 store=Depends(get_store)):
    policy = None
    if req.status is not None:
        policy = update_policy_status(store, policy_id, req.status)
    if "category" in req.model_fields_set:
        policy = update_policy_category(store, policy_id, req.category)
    if policy is None:
        return {"ok": False, "message": "Nothing to update"}
    return {"ok": True, "policy": policy}


@router.delete("/{policy_id}")
def remove_policy(policy_id: str, caller: CallerIdentity = Depends(require_policy_manager),
                  store=Depends(get_store)):
    delete_policy(store, policy_id)
    logging.info(f"Policy {policy_id} deleted by {caller.user_id}")
    return {"ok": True, "deleted": policy_id}
