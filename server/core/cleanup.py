"""Periodic cleanup service for the long-running server.

Reclaims expired schema cache entries and expired session rows on a fixed
interval. Expired cache entries are already invisible to readers; the sweep
only frees their memory.
"""
import asyncio
from typing import Optional, TYPE_CHECKING

from core.logging import get_logger

if TYPE_CHECKING:
    from core.cache import CacheService
    from services.user_auth import UserAuthService

logger = get_logger(__name__)


class CleanupService:
    """Background sweep over process-local and persisted expiring state."""

    def __init__(
        self,
        cache: "CacheService",
        user_auth: "UserAuthService",
        interval: int
    ):
        self.cache = cache
        self.user_auth = user_auth
        self.interval = interval
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the cleanup service background task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Cleanup service started", interval=self.interval)

    async def stop(self) -> None:
        """Stop the cleanup service gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Cleanup service stopped")

    async def _cleanup_loop(self) -> None:
        """Main cleanup loop - runs at configured interval."""
        while self._running:
            await asyncio.sleep(self.interval)
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Cleanup failed", error=str(e))

    async def run_once(self) -> dict:
        """Execute all cleanup tasks and return per-task counts."""
        results = {"expired_cache": self.cache.delete_expired()}

        try:
            results["expired_sessions"] = await self.user_auth.cleanup_expired_sessions()
        except Exception as e:
            logger.warning("Failed to cleanup expired sessions", error=str(e))
            results["expired_sessions"] = 0

        # Only log if something was cleaned up
        if sum(results.values()) > 0:
            logger.info("Cleanup completed", **results)
        return results
