"""Health check utilities for the /health endpoint."""
import time
from datetime import datetime, timezone
from typing import Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from core.cache import CacheService
    from core.database import Database
    from services.schema import SchemaStore

# Module-level startup time tracking
_startup_time: float = 0.0


def set_startup_time() -> None:
    """Record the application startup time. Call once during lifespan startup."""
    global _startup_time
    _startup_time = time.time()


def get_uptime() -> float:
    """Get uptime in seconds since startup."""
    return time.time() - _startup_time if _startup_time else 0.0


async def get_health_status(
    database: "Database",
    cache: "CacheService",
    schema_store: "SchemaStore",
    version: str
) -> Dict[str, Any]:
    """Get health status: database reachability, cache size, schema versions."""
    db_healthy = await database.ping()

    return {
        "status": "healthy" if db_healthy else "degraded",
        "version": version,
        "uptime_seconds": round(get_uptime(), 1),
        "checks": {
            "database": db_healthy,
        },
        "cache": cache.stats(),
        "schema_versions": schema_store.list_versions(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
