"""
Brand Statement Service for HyperLocal
CRUD for the five brand-strategy collections, owner-scoped.

One service class handles every kind; the kind key selects the table and
the column that holds the statement text.
"""
import logging
from typing import List

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import BRAND_MODELS
from services.errors import NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class BrandStatementService:
    """Service for one brand-strategy collection"""

    def __init__(self, session: AsyncSession, kind_key: str, field_name: str):
        if kind_key not in BRAND_MODELS:
            raise ValueError(f"Unknown brand kind: {kind_key}")
        self.session = session
        self.kind_key = kind_key
        self.model = BRAND_MODELS[kind_key]
        self.field_name = field_name
        self.column = getattr(self.model, field_name)

    async def create(self, user_id: str, statement: str, original_input: str):
        item = self.model(user_id=user_id, original_input=original_input)
        setattr(item, self.field_name, statement)
        self.session.add(item)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to save {self.kind_key} for user {user_id}: {e}")
            raise PersistenceError(f"Failed to save {self.kind_key}")
        await self.session.refresh(item)
        return item

    async def list(self, user_id: str) -> List:
        """All items owned by user_id, newest first"""
        try:
            result = await self.session.execute(
                select(self.model)
                .where(self.model.user_id == user_id)
                .order_by(self.model.created_at.desc(), self.model.id.desc())
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list {self.kind_key} for user {user_id}: {e}")
            raise PersistenceError(f"Failed to fetch {self.kind_key}")
        return list(result.scalars().all())

    async def update(self, item_id: int, user_id: str, statement: str):
        """Replace the statement text; raises NotFoundError when nothing matched"""
        try:
            result = await self.session.execute(
                update(self.model)
                .where(self.model.id == item_id, self.model.user_id == user_id)
                .values({self.column: statement})
                .returning(self.model)
            )
            item = result.scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update {self.kind_key} {item_id}: {e}")
            raise PersistenceError(f"Failed to update {self.kind_key}")

        if item is None:
            raise NotFoundError("Not found")
        return item

    async def delete(self, item_id: int, user_id: str) -> bool:
        """
        Delete iff owned by user_id. Deleting a missing or foreign item is a
        no-op; returns whether a row was removed.
        """
        try:
            result = await self.session.execute(
                delete(self.model)
                .where(self.model.id == item_id, self.model.user_id == user_id)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete {self.kind_key} {item_id}: {e}")
            raise PersistenceError(f"Failed to delete {self.kind_key}")
        return result.rowcount > 0
