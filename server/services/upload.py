"""Image ingestion: validate, name, persist and address uploaded files."""

import hashlib
import itertools
import secrets
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional

from core.exceptions import InvalidImageTypeError, UploadIOError
from core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp"})

# Upload type -> storage subdirectory; anything else lands in "general"
SUBDIRECTORIES: Dict[str, str] = {
    "category": "categories",
    "brand": "brands",
    "banner": "banners",
}
DEFAULT_SUBDIRECTORY = "general"

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class UploadedAsset:
    filename: str
    size: int
    url: str
    path: Path


def extension_of(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def is_valid_image(filename: str) -> bool:
    return extension_of(filename) in ALLOWED_EXTENSIONS


def subdirectory_for(category: Optional[str]) -> str:
    return SUBDIRECTORIES.get((category or "").lower(), DEFAULT_SUBDIRECTORY)


class UploadService:
    """Stores uploaded images under ``upload_dir/<subdir>/``."""

    def __init__(self, upload_dir: str, base_url: str, clock: Callable[[], float] = time.time):
        self.upload_dir = Path(upload_dir)
        self.base_url = base_url.rstrip("/")
        self._clock = clock
        self._counter = itertools.count()
        self._counter_lock = threading.Lock()

    def ensure_directories(self) -> None:
        for subdir in (*SUBDIRECTORIES.values(), DEFAULT_SUBDIRECTORY):
            (self.upload_dir / subdir).mkdir(parents=True, exist_ok=True)

    def generate_filename(self, original_name: str) -> str:
        """``<unix seconds>_<12 hex><ext>``, sortable by time.

        The hash mixes a per-process counter and a random salt into the name
        and timestamp, so identical names uploaded in the same second differ.
        """
        now = self._clock()
        with self._counter_lock:
            sequence = next(self._counter)
        seed = f"{original_name}-{int(now * 1_000_000_000)}-{sequence}-{secrets.token_hex(8)}"
        digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()[:12]
        return f"{int(now)}_{digest}{extension_of(original_name)}"

    def url_for(self, subdir: str, filename: str) -> str:
        return f"{self.base_url}/uploads/{subdir}/{filename}"

    def discard(self, asset: UploadedAsset) -> None:
        """Remove a stored file whose owning row was never written."""
        asset.path.unlink(missing_ok=True)
        logger.info("Upload discarded", filename=asset.filename)

    def ingest(self, fileobj: BinaryIO, original_name: str, category: Optional[str] = None,
               expected_size: Optional[int] = None) -> UploadedAsset:
        """Persist an uploaded image and return where it can be fetched."""
        if not is_valid_image(original_name):
            raise InvalidImageTypeError(f"Rejected upload {original_name!r}")

        subdir = subdirectory_for(category)
        filename = self.generate_filename(original_name)
        target_dir = self.upload_dir / subdir
        path = target_dir / filename

        written = 0
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as dst:
                while True:
                    chunk = fileobj.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    dst.write(chunk)
                    written += len(chunk)
        except OSError as e:
            path.unlink(missing_ok=True)
            logger.error("Failed to write upload", path=str(path), error=str(e))
            raise UploadIOError(f"Write failed for {path}: {e}") from e

        if expected_size is not None and written != expected_size:
            path.unlink(missing_ok=True)
            logger.error("Truncated upload", path=str(path), written=written, expected=expected_size)
            raise UploadIOError(f"Wrote {written} of {expected_size} bytes to {path}")

        logger.info("File uploaded", filename=filename, size=written, subdir=subdir)
        return UploadedAsset(
            filename=filename,
            size=written,
            url=self.url_for(subdir, filename),
            path=path,
        )
