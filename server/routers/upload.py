"""Standalone image upload route for admins."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.config import Settings
from core.container import container
from core.exceptions import FileTooLargeError, InvalidInputError
from core.logging import get_logger
from middleware.auth import require_admin
from models.auth import Claims
from services.upload import UploadService

logger = get_logger(__name__)
router = APIRouter(tags=["upload"])


def get_upload_service() -> UploadService:
    return container.upload_service()


def get_settings() -> Settings:
    return container.settings()


@router.post("/admin/upload")
async def upload_image(
    file: Optional[UploadFile] = File(None),
    type: str = Form("general"),
    claims: Claims = Depends(require_admin),
    uploads: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings)
):
    """Store one image; ``type`` picks the subdirectory (category, brand, banner)."""
    if file is None or not file.filename:
        raise InvalidInputError("file field missing", public_message="No file provided")
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise FileTooLargeError(f"{file.filename} is {file.size} bytes",
                                public_message="File too large or invalid")

    asset = await run_in_threadpool(uploads.ingest, file.file, file.filename, type, file.size)
    logger.info("Upload stored", filename=asset.filename, size=asset.size, type=type, by=claims.username)

    return {
        "success": True,
        "url": asset.url,
        "filename": asset.filename,
        "size": asset.size,
    }
