# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routes import admin_routes, brief_routes, office_routes, policy_routes, system_routes
from services.errors import DocumentParseError, RenderError

logging.basicConfig(level=logging.INFO)

# ------------------------------------------------------------------------------
# FastAPI app
# ------------------------------------------------------------------------------
app = FastAPI(title="Policy Proof Hub API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_routes.router)
app.include_router(policy_routes.router)
app.include_router(admin_routes.router)
app.include_router(brief_routes.router)
app.include_router(office_routes.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.info("== Pydantic Validation Errors ==")
    logging.info(exc.errors())
    return JSONResponse(status_code=422, content={"ok": False, "errors": jsonable_encoder(exc.errors())})


@app.exception_handler(DocumentParseError)
async def document_parse_error_handler(request: Request, exc: DocumentParseError):
    logging.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=422, content={"ok": False, "detail": "Failed to parse the .docx file"})


@app.exception_handler(RenderError)
async def render_error_handler(request: Request, exc: RenderError):
    logging.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"ok": False, "detail": "Failed to convert the document to PDF"})
