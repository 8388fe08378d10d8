"""Content tables referenced by screen schemas (categories and brands)."""

from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field, DateTime
from sqlalchemy import func


class ContentItemBase(SQLModel):
    """Columns shared by every content table."""

    name: str = Field(max_length=255)
    search_text: str = Field(default="", max_length=1000)
    image_url: str = Field(default="", max_length=1000)
    display_order: int = Field(default=0, index=True)
    is_active: bool = Field(default=True, index=True)  # listings only return active rows
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": func.now()}
    )
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    updated_by: Optional[int] = Field(default=None, foreign_key="users.id")


class Category(ContentItemBase, table=True):
    """Product category shown in client screens."""

    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)


class Brand(ContentItemBase, table=True):
    """Brand shown in client screens."""

    __tablename__ = "brands"

    id: Optional[int] = Field(default=None, primary_key=True)
