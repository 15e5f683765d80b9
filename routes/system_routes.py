# routes/system_routes.py
import logging
import mimetypes
import os

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from config import LOCAL_SAVE_DIR
from utils.date_utils import utc_now

logging.basicConfig(level=logging.INFO)

router = APIRouter(tags=["system"])


@router.get("/healthz")
def healthz():
    return {"ok": True, "time": utc_now().isoformat()}


@router.get("/local/{path:path}")
def get_local_file(path: str):
    root = os.path.realpath(LOCAL_SAVE_DIR)
    full = os.path.realpath(os.path.join(root, path))
    if os.path.commonpath([root, full]) != root or not os.path.isfile(full):
        raise HTTPException(404, "Not found")
    media_type, _ = mimetypes.guess_type(full)
    return FileResponse(full, media_type=media_type or "application/octet-stream")
