"""Translator assignment repository."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.repositories.base import BaseRepository


class TranslatorRelationRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, TranslatorJobRelRow)

    async def get_active(self, job_id: int) -> TranslatorJobRelRow | None:
        """Return the assignment that is neither cancelled nor completed."""
        stmt = (
            select(TranslatorJobRelRow)
            .where(
                TranslatorJobRelRow.job_id == job_id,
                TranslatorJobRelRow.cancel_at.is_(None),
                TranslatorJobRelRow.completed_at.is_(None),
            )
            .order_by(TranslatorJobRelRow.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_current(self, job_id: int) -> TranslatorJobRelRow | None:
        """Return the uncancelled assignment, falling back to a completed one."""
        stmt = (
            select(TranslatorJobRelRow)
            .where(
                TranslatorJobRelRow.job_id == job_id,
                TranslatorJobRelRow.cancel_at.is_(None),
            )
            .order_by(TranslatorJobRelRow.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        if row is not None:
            return row
        stmt = (
            select(TranslatorJobRelRow)
            .where(
                TranslatorJobRelRow.job_id == job_id,
                TranslatorJobRelRow.completed_at.is_not(None),
            )
            .order_by(TranslatorJobRelRow.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def append(self, user_id: int, job_id: int, **kwargs) -> TranslatorJobRelRow:
        return await self.create(user_id=user_id, job_id=job_id, **kwargs)

    async def cancel(self, relation: TranslatorJobRelRow, at: datetime) -> TranslatorJobRelRow:
        return await self.update(relation, cancel_at=at)

    async def cancel_all_uncancelled(self, job_id: int, at: datetime) -> int:
        stmt = (
            update(TranslatorJobRelRow)
            .where(
                TranslatorJobRelRow.job_id == job_id,
                TranslatorJobRelRow.cancel_at.is_(None),
            )
            .values(cancel_at=at)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def complete(
        self, relation: TranslatorJobRelRow, at: datetime, completed_by: int
    ) -> TranslatorJobRelRow:
        return await self.update(relation, completed_at=at, completed_by=completed_by)

    async def list_for_job(self, job_id: int) -> list[TranslatorJobRelRow]:
        stmt = (
            select(TranslatorJobRelRow)
            .where(TranslatorJobRelRow.job_id == job_id)
            .order_by(TranslatorJobRelRow.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def active_job_ids_for_users(self, user_ids: list[int]) -> list[int]:
        if not user_ids:
            return []
        stmt = select(TranslatorJobRelRow.job_id).where(
            TranslatorJobRelRow.user_id.in_(user_ids),
            TranslatorJobRelRow.cancel_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
