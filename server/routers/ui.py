"""Screen schema delivery routes.

Handlers are plain functions so FastAPI runs each request on its own
threadpool worker; schema reads are blocking file I/O.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.config import Settings
from core.container import container
from core.exceptions import MissingParameterError, VersionNotFoundError
from core.logging import get_logger
from middleware.auth import require_admin
from models.auth import Claims
from services.schema import SchemaCache, SchemaStore, validate_segment

logger = get_logger(__name__)
router = APIRouter(tags=["ui"])


def get_settings() -> Settings:
    return container.settings()


def get_schema_cache() -> SchemaCache:
    return container.schema_cache()


def get_schema_store() -> SchemaStore:
    return container.schema_store()


def resolve_version(version: Optional[str], settings: Settings) -> str:
    return validate_segment(version or settings.default_schema_version, "version")


@router.get("/ui")
def get_screen(
    screen: Optional[str] = Query(default=None),
    version: Optional[str] = Query(default=None),
    schema_cache: SchemaCache = Depends(get_schema_cache),
    settings: Settings = Depends(get_settings)
):
    """Return the schema document for one screen."""
    if not screen:
        raise MissingParameterError("screen query parameter missing",
                                    public_message="Screen parameter is required")
    validate_segment(screen, "screen")
    version = resolve_version(version, settings)

    schema = schema_cache.get(screen, version)
    return {
        "success": True,
        "data": schema.document,
        "version": schema.version,
        "cached_at": schema.cached_at.isoformat(),
    }


@router.get("/ui/version")
def get_version(
    version: Optional[str] = Query(default=None),
    schema_store: SchemaStore = Depends(get_schema_store),
    settings: Settings = Depends(get_settings)
):
    """Client version gate plus the screens available for a schema version."""
    version = resolve_version(version, settings)
    try:
        screens = schema_store.list_screens(version)
    except VersionNotFoundError as e:
        logger.warning("Version requested without schemas", version=version, error=str(e))
        screens = []

    return {
        "success": True,
        "app_version": settings.app_version,
        "min_version": settings.min_app_version,
        "force_update": settings.force_update,
        "available_screens": screens,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ui/screens")
def list_screens(
    version: Optional[str] = Query(default=None),
    schema_store: SchemaStore = Depends(get_schema_store),
    settings: Settings = Depends(get_settings)
):
    """List screen names for a schema version."""
    version = resolve_version(version, settings)
    return {"success": True, "screens": schema_store.list_screens(version), "version": version}


@router.post("/admin/cache/clear")
def clear_cache(
    claims: Claims = Depends(require_admin),
    schema_cache: SchemaCache = Depends(get_schema_cache)
):
    """Flush this process's schema cache."""
    cleared = schema_cache.invalidate()
    logger.info("Cache cleared", by=claims.username, entries=cleared)
    return {"success": True, "message": "Cache cleared", "cleared": cleared}
