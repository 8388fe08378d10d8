import json
import os
import tempfile
import threading

# main.py builds an app at import time; point it at throwaway locations
_BOOT_DIR = tempfile.mkdtemp(prefix="dynamic-ui-tests-")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_BOOT_DIR, "uploads"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_BOOT_DIR}/boot.db")
os.environ.setdefault("SCHEMA_BASE_PATH", os.path.join(_BOOT_DIR, "schemas"))
os.environ.setdefault("LOG_FORMAT", "console")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytest_asyncio
from dependency_injector import providers
from fastapi.testclient import TestClient

from core.config import Settings
from core.container import container
from core.database import Database
from services.schema import SchemaStore, validate_segment

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-password"
API = "/api/v1"

HOME_SCHEMA = {
    "screen": "home",
    "layout": {"type": "column", "children": [{"type": "banner", "height": 180}]},
}


class CountingSchemaStore(SchemaStore):
    """SchemaStore that records how many reads reached the filesystem."""

    def __init__(self, base_path):
        super().__init__(base_path)
        self.reads = 0
        self._lock = threading.Lock()

    def read(self, screen, version):
        validate_segment(version, "version")
        validate_segment(screen)
        with self._lock:
            self.reads += 1
        return super().read(screen, version)


@pytest.fixture
def schema_dir(tmp_path):
    base = tmp_path / "schemas"
    v1 = base / "v1"
    v1.mkdir(parents=True)
    (v1 / "home.json").write_text(json.dumps(HOME_SCHEMA), encoding="utf-8")
    (v1 / "search.json").write_text(json.dumps({"screen": "search"}), encoding="utf-8")
    (v1 / "broken.json").write_text("{not json", encoding="utf-8")
    (v1 / "notes.txt").write_text("ignored", encoding="utf-8")
    (v1 / "drafts").mkdir()
    v2 = base / "v2"
    v2.mkdir()
    (v2 / "home.json").write_text(json.dumps({"screen": "home", "rev": 2}), encoding="utf-8")
    return base


@pytest.fixture
def settings(tmp_path, schema_dir):
    return Settings(
        jwt_secret_key="test-secret-key-0123456789abcdef0123456789",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        schema_base_path=str(schema_dir),
        upload_dir=str(tmp_path / "uploads"),
        base_url="http://testserver",
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        log_format="console",
        log_level="WARNING",
    )


@pytest.fixture
def app_container(settings):
    container.settings.override(providers.Object(settings))
    container.reset_singletons()
    yield container
    container.settings.reset_override()
    container.reset_singletons()


@pytest.fixture
def client(app_container):
    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(client):
    res = client.post(f"{API}/auth/login",
                      json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings)
    await db.startup()
    yield db
    await db.shutdown()
