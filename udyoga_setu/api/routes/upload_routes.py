"""
QR Upload Routes

POST /uploads - Start a handoff session (kiosk/desktop)
GET /uploads/formats - Accepted resume formats
GET /uploads/{upload_id}/qr.png - QR code for the mobile upload page
GET /uploads/{upload_id}/status - One poll of the session
GET /uploads/{upload_id}/wait - Long-poll until uploaded or expired
POST /uploads/{upload_id}/file - Phone uploads the resume
GET /uploads/{upload_id}/file - Kiosk downloads the uploaded resume

GET /mobile-upload/{upload_id} - Page the QR code points at (mounted without /api)
"""

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, UploadFile, File
from fastapi.responses import Response, HTMLResponse
from fastapi.templating import Jinja2Templates

from udyoga_setu.core.config import get_settings
from udyoga_setu.services.storage_service import StorageService, get_storage
from udyoga_setu.services.upload_service import get_upload_service
from udyoga_setu.utils.file_upload import get_supported_formats
from udyoga_setu.schemas.schemas import (
    UploadSessionCreate, UploadSessionResponse, UploadStatusResponse, UploadedFileInfo
)

settings = get_settings()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))

router = APIRouter(prefix="/uploads", tags=["QR Uploads"])
page_router = APIRouter(tags=["QR Uploads"])


@router.post("", response_model=UploadSessionResponse, status_code=201)
async def create_upload_session(
    data: Optional[UploadSessionCreate] = None,
    storage: StorageService = Depends(get_storage)
):
    """Start a QR handoff. The session accepts one file for 5 minutes."""
    data = data or UploadSessionCreate()
    return get_upload_service().create_session(storage, job_id=data.job_id, kiosk_id=data.kiosk_id)


@router.get("/formats")
async def supported_formats():
    return get_supported_formats()


@router.get("/{upload_id}/qr.png")
async def upload_qr_code(upload_id: str, scale: int = Query(6, ge=1, le=20)):
    png = get_upload_service().render_qr_png(upload_id, scale=scale)
    return Response(content=png, media_type="image/png")


@router.get("/{upload_id}/status", response_model=UploadStatusResponse)
async def upload_status(upload_id: str):
    """Poll every 2 seconds: waiting, uploaded or expired."""
    return get_upload_service().check_upload(upload_id)


@router.get("/{upload_id}/wait", response_model=UploadStatusResponse)
async def wait_for_upload(upload_id: str, timeout: float = Query(30, ge=0, le=300)):
    """Hold the request until the file arrives, the session expires or `timeout` seconds pass."""
    return await get_upload_service().wait_for_upload(upload_id, timeout=timeout)


@router.post("/{upload_id}/file", response_model=UploadedFileInfo, status_code=201)
async def receive_upload(
    upload_id: str,
    file: UploadFile = File(...),
    storage: StorageService = Depends(get_storage)
):
    """
    Mobile side of the handoff.

    Errors: 404 unknown session, 410 expired, 409 already uploaded,
    400 unsupported or empty file, 413 larger than the size limit.
    """
    return await get_upload_service().receive_upload(upload_id, file, storage)


@router.get("/{upload_id}/file")
async def download_upload(upload_id: str, storage: StorageService = Depends(get_storage)):
    blob = get_upload_service().download_upload(upload_id, storage)
    filename = blob.metadata.get("original_name", blob.path.rsplit("/", 1)[-1])
    return Response(
        content=blob.data,
        media_type=blob.content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@page_router.get("/mobile-upload/{upload_id}", response_class=HTMLResponse, include_in_schema=False)
async def mobile_upload_page(request: Request, upload_id: str, job: Optional[str] = None):
    status = get_upload_service().check_upload(upload_id)
    return templates.TemplateResponse(
        request,
        "mobile_upload.html",
        {
            "upload_id": upload_id,
            "job_id": job,
            "status": status["status"],
            "upload_url": f"/api/uploads/{upload_id}/file",
            "formats": get_supported_formats(),
        }
    )
