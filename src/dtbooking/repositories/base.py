"""Base repository with the lookups shared by every booking aggregate."""

from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository:
    """Generic async repository for SQLAlchemy models."""

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def get(self, pk: int) -> T | None:
        """Primary-key lookup through the session identity map."""
        return await self.session.get(self.model_class, pk)

    async def get_one_by(self, field: str, value: Any) -> T | None:
        stmt = select(self.model_class).where(getattr(self.model_class, field) == value)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **values: Any) -> T:
        """Add a row and flush so its generated id is available."""
        row = self.model_class(**values)
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, row: T, **values: Any) -> T:
        for key, value in values.items():
            setattr(row, key, value)
        await self.session.flush()
        return row
