"""Screen schema store and the read-through cache in front of it.

Schemas live on disk as ``<base_path>/<version>/<screen>.json`` and are
authored out-of-band; this service only reads them.
"""

import copy
import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from core.cache import CacheService
from core.exceptions import (
    InvalidParameterError,
    SchemaMalformedError,
    SchemaNotFoundError,
    VersionNotFoundError,
)
from core.logging import get_logger

logger = get_logger(__name__)

SCHEMA_EXTENSION = ".json"
FORBIDDEN_SEGMENT_PARTS = ("..", "/", "\\", ":", "\x00")


def validate_segment(value: str, field: str = "screen") -> str:
    """Reject names that could escape the schema directory or collide in cache keys.

    Must run on the raw client value before any lookup is attempted.
    """
    if not value or any(part in value for part in FORBIDDEN_SEGMENT_PARTS):
        raise InvalidParameterError(
            f"Invalid {field} name: {value!r}",
            public_message=f"Invalid {field} name",
        )
    return value


@dataclass(frozen=True)
class ScreenSchema:
    screen: str
    version: str
    document: Dict[str, Any]
    cached_at: datetime


class SchemaStore:
    """Reads schema documents from the versioned file namespace."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)

    def _version_dir(self, version: str) -> Path:
        return self.base_path / validate_segment(version, "version")

    def read(self, screen: str, version: str) -> Dict[str, Any]:
        path = self._version_dir(version) / f"{validate_segment(screen)}{SCHEMA_EXTENSION}"

        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise SchemaNotFoundError(f"Schema file missing: {path}") from e
        except OSError as e:
            logger.error("Schema file unreadable", screen=screen, version=version, error=str(e))
            raise SchemaNotFoundError(f"Cannot read {path}: {e}") from e

        try:
            document = json.loads(raw)
        except ValueError as e:
            logger.error("Malformed schema file", screen=screen, version=version, error=str(e))
            raise SchemaMalformedError(f"Invalid JSON in {path}: {e}") from e

        if not isinstance(document, dict):
            logger.error("Schema root is not an object", screen=screen, version=version)
            raise SchemaMalformedError(f"Schema root in {path} is {type(document).__name__}")

        return document

    def list_screens(self, version: str) -> List[str]:
        """Screen names available for a version, sorted."""
        version_dir = self._version_dir(version)
        if not version_dir.is_dir():
            raise VersionNotFoundError(f"Schema version directory missing: {version_dir}")

        return sorted(
            entry.stem
            for entry in version_dir.iterdir()
            if entry.is_file() and entry.suffix == SCHEMA_EXTENSION
        )

    def list_versions(self) -> List[str]:
        if not self.base_path.is_dir():
            return []
        return sorted(entry.name for entry in self.base_path.iterdir() if entry.is_dir())


class SchemaCache:
    """Read-through cache keyed by (screen, version).

    Failed lookups are never cached. Two threads missing the same key may
    both read the store; the later ``set`` wins.
    """

    def __init__(self, store: SchemaStore, cache: CacheService):
        self.store = store
        self.cache = cache

    @staticmethod
    def cache_key(screen: str, version: str) -> str:
        return f"schema:{screen}:{version}"

    def get(self, screen: str, version: str) -> ScreenSchema:
        key = self.cache_key(screen, version)
        cached = self.cache.get(key)
        if cached is None:
            document = self.store.read(screen, version)
            cached = ScreenSchema(
                screen=screen,
                version=version,
                document=document,
                cached_at=datetime.now(timezone.utc),
            )
            self.cache.set(key, cached)
            logger.debug("Schema loaded from store", screen=screen, version=version)

        # Hand out a copy so callers cannot mutate the cached document
        return replace(cached, document=copy.deepcopy(cached.document))

    def invalidate(self) -> int:
        cleared = self.cache.flush_all()
        logger.info("Schema cache cleared", entries=cleared)
        return cleared
