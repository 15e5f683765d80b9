# routes/brief_routes.py
import logging

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.responses import HTMLResponse, Response

from models.schemas import BriefExport, BriefImportResponse, IntakeForm
from services.brief_editor import (
    DEFAULT_BRIEF_TITLE,
    PPDU_BRIEF_TEMPLATE,
    export_brief_docx,
    export_intake_form_docx,
    generate_intake_form_html,
    import_brief,
)
from services.storage import DOCX_CONTENT_TYPE
from utils.text_utils import content_disposition

logging.basicConfig(level=logging.INFO)

router = APIRouter(prefix="/briefs", tags=["briefs"])


def _docx_response(filename: str, data: bytes) -> Response:
    return Response(
        content=data,
        media_type=DOCX_CONTENT_TYPE,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("/template")
def brief_template():
    return {"title": DEFAULT_BRIEF_TITLE, "html": PPDU_BRIEF_TEMPLATE}


@router.post("/import", response_model=BriefImportResponse)
async def brief_import(file: UploadFile = File(...)):
    data = await file.read()
    return BriefImportResponse(**import_brief(file.filename, data))


@router.post("/export")
def brief_export(req: BriefExport):
    filename, data = export_brief_docx(req.title, req.html)
    logging.info(f"Exported brief {filename} ({len(data)} bytes)")
    return _docx_response(filename, data)


@router.post("/intake-form")
def intake_form(form: IntakeForm, format: str = Query("html")):
    if format == "html":
        return HTMLResponse(generate_intake_form_html(form))
    if format == "docx":
        filename, data = export_intake_form_docx(form)
        return _docx_response(filename, data)
    raise HTTPException(400, "format must be 'html' or 'docx'")
