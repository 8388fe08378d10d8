"""Category and brand routes: public listing plus admin management."""

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

from core.config import Settings
from core.container import container
from core.exceptions import FileTooLargeError, InvalidInputError
from core.logging import get_logger
from middleware.auth import require_admin
from models.auth import Claims
from services.content import ContentField, ContentRepository
from services.upload import UploadedAsset, UploadService

logger = get_logger(__name__)
router = APIRouter(tags=["content"])


class ContentKind(str, Enum):
    categories = "categories"
    brands = "brands"

    @property
    def upload_type(self) -> str:
        return "category" if self is ContentKind.categories else "brand"


def get_content_repository(kind: ContentKind) -> ContentRepository:
    if kind is ContentKind.categories:
        return container.category_repository()
    return container.brand_repository()


def get_upload_service() -> UploadService:
    return container.upload_service()


def get_settings() -> Settings:
    return container.settings()


def parse_int(value: str, field: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise InvalidInputError(f"{field}={value!r} is not an integer",
                                public_message=f"{field} must be an integer")


async def store_image(image: UploadFile, kind: ContentKind, uploads: UploadService,
                      settings: Settings) -> UploadedAsset:
    """Ingest an uploaded image for one content kind."""
    if image.size is not None and image.size > settings.max_upload_bytes:
        raise FileTooLargeError(f"{image.filename} is {image.size} bytes")
    return await run_in_threadpool(
        uploads.ingest, image.file, image.filename, kind.upload_type, image.size
    )


@router.get("/content/{kind}")
async def list_public(repository: ContentRepository = Depends(get_content_repository)):
    """Active items in display order (public, used by client apps)."""
    return {"success": True, "data": await repository.list()}


@router.get("/admin/{kind}")
async def list_admin(
    include_inactive: bool = False,
    claims: Claims = Depends(require_admin),
    repository: ContentRepository = Depends(get_content_repository)
):
    return {"success": True, "data": await repository.list(include_inactive=include_inactive)}


@router.get("/admin/{kind}/{item_id}")
async def get_item(
    item_id: int,
    claims: Claims = Depends(require_admin),
    repository: ContentRepository = Depends(get_content_repository)
):
    return {"success": True, "data": await repository.get(item_id)}


@router.post("/admin/{kind}")
async def create_item(
    kind: ContentKind,
    name: str = Form(""),
    search_text: str = Form(""),
    display_order: str = Form(""),
    image: Optional[UploadFile] = File(None),
    claims: Claims = Depends(require_admin),
    repository: ContentRepository = Depends(get_content_repository),
    uploads: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings)
):
    """Create an item from a multipart form with a required image."""
    if not name or not search_text:
        raise InvalidInputError("name or search_text missing",
                                public_message="Name and search_text are required")
    if image is None or not image.filename:
        raise InvalidInputError("image missing", public_message="Image file is required")

    fields: Dict[str, Any] = {
        ContentField.NAME.value: name,
        ContentField.SEARCH_TEXT.value: search_text,
        ContentField.DISPLAY_ORDER.value: parse_int(display_order, "display_order") if display_order else 0,
    }
    asset = await store_image(image, kind, uploads, settings)
    fields[ContentField.IMAGE_URL.value] = asset.url

    try:
        item = await repository.create(fields, claims.user_id)
    except Exception:
        await run_in_threadpool(uploads.discard, asset)
        raise

    logger.info("Item created", kind=kind.value, id=item.id, name=item.name, by=claims.username)
    return {"success": True, "data": item}


@router.put("/admin/{kind}/{item_id}")
async def update_item(
    kind: ContentKind,
    item_id: int,
    name: str = Form(""),
    search_text: str = Form(""),
    display_order: str = Form(""),
    is_active: str = Form(""),
    image: Optional[UploadFile] = File(None),
    claims: Claims = Depends(require_admin),
    repository: ContentRepository = Depends(get_content_repository),
    uploads: UploadService = Depends(get_upload_service),
    settings: Settings = Depends(get_settings)
):
    """Partially update an item; empty form fields are left untouched."""
    changes: Dict[str, Any] = {}
    if name:
        changes[ContentField.NAME.value] = name
    if search_text:
        changes[ContentField.SEARCH_TEXT.value] = search_text
    if display_order:
        changes[ContentField.DISPLAY_ORDER.value] = parse_int(display_order, "display_order")
    if is_active:
        changes[ContentField.IS_ACTIVE.value] = is_active.lower() == "true"

    # Fail before touching disk when the row does not exist
    await repository.get(item_id)
    asset: Optional[UploadedAsset] = None
    if image is not None and image.filename:
        asset = await store_image(image, kind, uploads, settings)
        changes[ContentField.IMAGE_URL.value] = asset.url

    try:
        item = await repository.update(item_id, changes, claims.user_id)
    except Exception:
        # The row vanished or the write failed; the new file has no owner
        if asset is not None:
            await run_in_threadpool(uploads.discard, asset)
        raise

    logger.info("Item updated", kind=kind.value, id=item_id, by=claims.username)
    return {"success": True, "data": item}


@router.delete("/admin/{kind}/{item_id}")
async def delete_item(
    kind: ContentKind,
    item_id: int,
    claims: Claims = Depends(require_admin),
    repository: ContentRepository = Depends(get_content_repository)
):
    await repository.delete(item_id)
    logger.info("Item deleted", kind=kind.value, id=item_id, by=claims.username)
    singular = "Category" if kind is ContentKind.categories else "Brand"
    return {"success": True, "data": {"message": f"{singular} deleted"}}
