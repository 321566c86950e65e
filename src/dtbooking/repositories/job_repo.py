"""Job repository."""

from datetime import datetime

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.job import DistanceRow, JobRow
from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.db.models.user import UsersBlacklistRow
from dtbooking.models.enums import JobStatus
from dtbooking.repositories.base import BaseRepository


class JobRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, JobRow)

    async def compare_and_set_status(
        self, job_id: int, expected: str, new_status: str, **values
    ) -> bool:
        """Move a job from ``expected`` to ``new_status`` in a single conditional UPDATE.

        Returns False when another writer changed the status first.
        """
        stmt = (
            update(JobRow)
            .where(JobRow.id == job_id, JobRow.status == expected)
            .values(status=new_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def refresh(self, job: JobRow) -> JobRow:
        await self.session.refresh(job)
        return job

    async def list_for_customer(
        self,
        user_id: int,
        statuses: tuple[str, ...],
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JobRow]:
        order = JobRow.due.desc() if newest_first else JobRow.due.asc()
        stmt = (
            select(JobRow)
            .where(JobRow.user_id == user_id, JobRow.status.in_(statuses))
            .order_by(order)
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_customer(self, user_id: int, statuses: tuple[str, ...]) -> int:
        stmt = select(func.count(JobRow.id)).where(
            JobRow.user_id == user_id, JobRow.status.in_(statuses)
        )
        return (await self.session.execute(stmt)).scalar_one()

    def _translator_jobs_stmt(self, translator_id: int, statuses: tuple[str, ...]) -> Select:
        return (
            select(JobRow)
            .join(TranslatorJobRelRow, TranslatorJobRelRow.job_id == JobRow.id)
            .where(
                TranslatorJobRelRow.user_id == translator_id,
                TranslatorJobRelRow.cancel_at.is_(None),
                JobRow.status.in_(statuses),
            )
        )

    async def list_for_translator(
        self,
        translator_id: int,
        statuses: tuple[str, ...],
        newest_first: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JobRow]:
        order = JobRow.due.desc() if newest_first else JobRow.due.asc()
        stmt = self._translator_jobs_stmt(translator_id, statuses).order_by(order).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def count_for_translator(self, translator_id: int, statuses: tuple[str, ...]) -> int:
        stmt = select(func.count()).select_from(
            self._translator_jobs_stmt(translator_id, statuses).subquery()
        )
        return (await self.session.execute(stmt)).scalar_one()

    async def list_booked_for_translator(self, translator_id: int, exclude_job_id: int) -> list[JobRow]:
        """Jobs the translator currently holds (assigned or started), other than ``exclude_job_id``."""
        stmt = (
            select(JobRow)
            .join(TranslatorJobRelRow, TranslatorJobRelRow.job_id == JobRow.id)
            .where(
                TranslatorJobRelRow.user_id == translator_id,
                TranslatorJobRelRow.cancel_at.is_(None),
                TranslatorJobRelRow.completed_at.is_(None),
                JobRow.status.in_((JobStatus.ASSIGNED, JobStatus.STARTED)),
                JobRow.id != exclude_job_id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_eligible_pending(
        self,
        translator_id: int,
        job_type: str,
        language_ids: list[int],
        gender: str | None,
        certified_values: list[str],
        now: datetime,
    ) -> list[JobRow]:
        """Pending future jobs matching a translator profile.

        Jobs without a gender or certification requirement match every
        translator. Jobs posted by customers who blacklisted the translator
        are excluded.
        """
        if not language_ids:
            return []
        blacklisting_customers = select(UsersBlacklistRow.user_id).where(
            UsersBlacklistRow.translator_id == translator_id
        )
        gender_clause = JobRow.gender.is_(None)
        if gender:
            gender_clause = or_(gender_clause, JobRow.gender == gender)
        stmt = (
            select(JobRow)
            .where(
                JobRow.status == JobStatus.PENDING,
                JobRow.job_type == job_type,
                JobRow.from_language_id.in_(language_ids),
                JobRow.due >= now,
                gender_clause,
                or_(JobRow.certified.is_(None), JobRow.certified.in_(certified_values)),
                JobRow.user_id.not_in(blacklisting_customers),
            )
            .order_by(JobRow.due.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def clone(self, job: JobRow, **overrides) -> JobRow:
        """Insert a copy of ``job`` as a new record."""
        skip = {"id", "created_at", "updated_at"}
        values = {
            column.key: getattr(job, column.key)
            for column in JobRow.__table__.columns
            if column.key not in skip
        }
        values.update(overrides)
        return await self.create(**values)

    async def list_all(self) -> list[JobRow]:
        result = await self.session.execute(select(JobRow))
        return list(result.scalars().all())

    async def paginate(self, stmt: Select, page: int, page_size: int) -> dict:
        total = (
            await self.session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
        ).scalar_one()
        page = max(page, 1)
        result = await self.session.execute(stmt.limit(page_size).offset((page - 1) * page_size))
        return {
            "items": list(result.scalars().all()),
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": (total + page_size - 1) // page_size,
        }

    async def count(self, stmt: Select) -> int:
        return (
            await self.session.execute(select(func.count()).select_from(stmt.order_by(None).subquery()))
        ).scalar_one()


class DistanceRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, DistanceRow)

    async def get_by_job(self, job_id: int) -> DistanceRow | None:
        return await self.get_one_by("job_id", job_id)

    async def upsert(self, job_id: int, distance: str, time: str) -> DistanceRow:
        row = await self.get_by_job(job_id)
        if row is None:
            return await self.create(job_id=job_id, distance=distance, time=time)
        return await self.update(row, distance=distance, time=time)
