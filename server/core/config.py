"""Environment-driven configuration with Pydantic v2."""

from typing import List, Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings driven entirely by environment variables."""

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1024, le=65535)
    debug: bool = Field(default=False)
    workers: int = Field(default=1, ge=1, le=8)
    api_prefix: str = Field(default="/api/v1")
    base_url: str = Field(default="http://localhost:8080")

    # Authentication
    jwt_secret_key: str = Field(min_length=32)
    jwt_expire_minutes: int = Field(default=1440, ge=1)  # 24 hours
    admin_username: Optional[str] = Field(default=None)
    admin_password: Optional[str] = Field(default=None)

    # Security
    cors_origins: List[str] = Field(default=["*"])

    # Database Configuration
    database_url: str = Field(default="sqlite+aiosqlite:///./data/dynamic_ui.db")
    database_echo: bool = Field(default=False)
    database_pool_size: int = Field(default=20, ge=5, le=100)
    database_max_overflow: int = Field(default=30, ge=10, le=100)

    # Screen schemas
    schema_base_path: str = Field(default="./schemas")
    default_schema_version: str = Field(default="v1")
    schema_cache_ttl: int = Field(default=300, ge=0)  # 5 minutes
    schema_cache_sweep_interval: int = Field(default=600, ge=1)  # 10 minutes

    # Client version gate
    app_version: str = Field(default="1.0.0")
    min_app_version: str = Field(default="1.0.0")
    force_update: bool = Field(default=False)

    # Uploads
    upload_dir: str = Field(default="./uploads")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)  # 10 MiB

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    @field_validator("base_url", "api_prefix")
    @classmethod
    def strip_trailing_slash(cls, v):
        """URLs are joined with '/', keep them without a trailing one."""
        return v.rstrip("/")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
    }
