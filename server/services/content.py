"""Repository for category and brand rows.

Updates are partial: only the fields a caller supplies are written, together
with the audit stamp (``updated_by``/``updated_at``), in one statement.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from sqlalchemy import delete, update
from sqlmodel import select

from core.database import Database
from core.exceptions import ContentNotFoundError, InvalidInputError
from core.logging import get_logger
from models.content import Brand, Category

logger = get_logger(__name__)

ContentModel = Union[Category, Brand]


class ContentField(str, Enum):
    """Columns a caller may change. The only source of column names in updates."""

    NAME = "name"
    SEARCH_TEXT = "search_text"
    IMAGE_URL = "image_url"
    DISPLAY_ORDER = "display_order"
    IS_ACTIVE = "is_active"


FIELD_TYPES: Dict[ContentField, type] = {
    ContentField.NAME: str,
    ContentField.SEARCH_TEXT: str,
    ContentField.IMAGE_URL: str,
    ContentField.DISPLAY_ORDER: int,
    ContentField.IS_ACTIVE: bool,
}

Assignment = Tuple[str, Any]


def build_assignments(changes: Dict[str, Any], acting_user_id: int,
                      now: Optional[datetime] = None) -> List[Assignment]:
    """Turn optional field changes into ordered (column, value) pairs.

    The audit stamp always comes first; supplied fields follow in
    ``ContentField`` order. Keys that are not content fields are rejected.
    """
    unknown = set(changes) - {field.value for field in ContentField}
    if unknown:
        raise InvalidInputError(f"Unknown fields: {sorted(unknown)}",
                                public_message="Unknown fields in update")

    assignments: List[Assignment] = [
        ("updated_by", acting_user_id),
        ("updated_at", now or datetime.now(timezone.utc)),
    ]
    for field in ContentField:
        if field.value not in changes:
            continue
        value = changes[field.value]
        expected = FIELD_TYPES[field]
        # bool is an int subclass; display_order must be a real int
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise InvalidInputError(
                f"{field.value} must be {expected.__name__}, got {type(value).__name__}",
                public_message=f"Invalid value for {field.value}",
            )
        assignments.append((field.value, value))
    return assignments


def render_update(model: Type[ContentModel], item_id: int, assignments: Sequence[Assignment]):
    """Render assignments into one parameterized UPDATE ... RETURNING statement."""
    return (
        update(model)
        .where(model.id == item_id)
        .ordered_values(*[(getattr(model, column), value) for column, value in assignments])
        .returning(model)
        .execution_options(synchronize_session=False)
    )


class ContentRepository:
    """CRUD over one content table."""

    def __init__(self, database: Database, model: Type[ContentModel]):
        self.database = database
        self.model = model

    @property
    def label(self) -> str:
        return self.model.__tablename__

    async def list(self, include_inactive: bool = False) -> List[ContentModel]:
        """Rows ordered by display order, ties broken by id."""
        stmt = select(self.model)
        if not include_inactive:
            stmt = stmt.where(self.model.is_active == True)  # noqa: E712
        stmt = stmt.order_by(self.model.display_order.asc(), self.model.id.asc())

        async with self.database.get_session() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get(self, item_id: int) -> ContentModel:
        async with self.database.get_session() as session:
            item = await session.get(self.model, item_id)
        if item is None:
            raise ContentNotFoundError(f"{self.label} {item_id} not found")
        return item

    async def create(self, fields: Dict[str, Any], acting_user_id: int) -> ContentModel:
        """Insert a row and return it as persisted."""
        if not fields.get(ContentField.NAME.value):
            raise InvalidInputError("name is required", public_message="Name is required")
        values = {column: value for column, value in build_assignments(fields, acting_user_id)
                  if column != "updated_at"}
        item = self.model(created_by=acting_user_id, **values)

        async with self.database.get_session() as session:
            session.add(item)
            await session.flush()
            await session.refresh(item)
            await session.commit()

        logger.info("Content created", table=self.label, id=item.id, by=acting_user_id)
        return item

    async def update(self, item_id: int, changes: Dict[str, Any], acting_user_id: int) -> ContentModel:
        stmt = render_update(self.model, item_id, build_assignments(changes, acting_user_id))

        async with self.database.get_session() as session:
            result = await session.execute(stmt)
            item = result.scalars().first()
            if item is None:
                raise ContentNotFoundError(f"{self.label} {item_id} not found")
            await session.commit()

        logger.info("Content updated", table=self.label, id=item_id,
                    fields=sorted(changes), by=acting_user_id)
        return item

    async def delete(self, item_id: int) -> None:
        """Hard delete. Use update(is_active=False) to hide a row instead."""
        async with self.database.get_session() as session:
            stmt = (
                delete(self.model)
                .where(self.model.id == item_id)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise ContentNotFoundError(f"{self.label} {item_id} not found")
            await session.commit()

        logger.info("Content deleted", table=self.label, id=item_id)
