"""Admin job listings and their filter query."""

import logging

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.config import settings
from dtbooking.db.models.job import DistanceRow, JobRow
from dtbooking.db.models.user import UserMetaRow, UserRow
from dtbooking.models.enums import YES, ConsumerType, JobStatus, JobType, UserType
from dtbooking.models.job import JobFilters, job_out
from dtbooking.repositories.job_repo import JobRepository
from dtbooking.repositories.translator_repo import TranslatorRelationRepository
from dtbooking.repositories.user_repo import LanguageRepository, UserMetaRepository, UserRepository
from dtbooking.services.business_time import local_now, parse_day

logger = logging.getLogger(__name__)


def session_minutes(session_time: str | None) -> float | None:
    """Minutes recorded in an ``H:MM:SS`` session time, or None when incomplete."""
    if not session_time:
        return None
    parts = session_time.split(":")
    if len(parts) < 3:
        return None
    try:
        hours, minutes, seconds = (int(p) for p in parts[:3])
    except ValueError:
        return None
    return hours * 60 + minutes + seconds / 60


class JobQueryService:
    def __init__(self, session: AsyncSession):
        self.jobs = JobRepository(session)
        self.users = UserRepository(session)
        self.meta = UserMetaRepository(session)
        self.relations = TranslatorRelationRepository(session)
        self.languages = LanguageRepository(session)

    async def _restricted_job_type(self, actor: UserRow) -> str:
        consumer_type = await self.meta.get_value(actor.id, "consumer_type")
        return JobType.RWS if consumer_type == ConsumerType.RWS_CONSUMER else JobType.UNPAID

    @staticmethod
    def _time_window(stmt: Select, filters: JobFilters) -> Select:
        if filters.filter_timetype is None:
            return stmt
        column = JobRow.created_at if filters.filter_timetype == "created" else JobRow.due
        if filters.from_:
            stmt = stmt.where(column >= parse_day(filters.from_))
        if filters.to:
            stmt = stmt.where(column <= parse_day(filters.to, end_of_day=True))
        return stmt.order_by(column.desc())

    async def apply_filters(self, stmt: Select, filters: JobFilters, actor: UserRow) -> Select:
        """Narrow a job query by the dashboard filters the actor may use.

        Superadmins get the full filter set. Everyone else is pinned to the
        job type of their consumer profile.
        """
        if filters.id:
            stmt = stmt.where(JobRow.id.in_(filters.id))
        if filters.lang:
            stmt = stmt.where(JobRow.from_language_id.in_(filters.lang))
        if filters.status:
            stmt = stmt.where(JobRow.status.in_(filters.status))
        if filters.job_type:
            stmt = stmt.where(JobRow.job_type.in_(filters.job_type))
        stmt = self._time_window(stmt, filters)

        if filters.customer_email:
            customer = await self.users.get_by_email(filters.customer_email)
            if customer is not None:
                stmt = stmt.where(JobRow.user_id == customer.id)

        if actor.user_type != UserType.SUPERADMIN:
            return stmt.where(JobRow.job_type == await self._restricted_job_type(actor))

        if filters.expired_at:
            stmt = stmt.where(JobRow.expired_at >= parse_day(filters.expired_at))
        if filters.will_expire_at:
            stmt = stmt.where(JobRow.will_expire_at >= parse_day(filters.will_expire_at))
        if filters.translator_email:
            translators = await self.users.list_by_emails(filters.translator_email)
            if translators:
                job_ids = await self.relations.active_job_ids_for_users([t.id for t in translators])
                stmt = stmt.where(JobRow.id.in_(job_ids))
        if filters.physical:
            stmt = stmt.where(
                JobRow.customer_physical_type == filters.physical,
                JobRow.ignore_physical.is_(False),
            )
        if filters.phone:
            stmt = stmt.where(JobRow.customer_phone_type == filters.phone)
            if filters.physical:
                stmt = stmt.where(JobRow.ignore_physical_phone.is_(False))
        if filters.flagged:
            stmt = stmt.where(JobRow.flagged == filters.flagged, JobRow.ignore_flagged.is_(False))
        if filters.distance == "empty":
            stmt = stmt.where(JobRow.id.not_in(select(DistanceRow.job_id)))
        if filters.consumer_type:
            customers = select(UserMetaRow.user_id).where(
                UserMetaRow.consumer_type == filters.consumer_type
            )
            stmt = stmt.where(JobRow.user_id.in_(customers))
        if filters.booking_type == "phone":
            stmt = stmt.where(JobRow.customer_phone_type == YES)
        elif filters.booking_type == "physical":
            stmt = stmt.where(JobRow.customer_physical_type == YES)
        return stmt

    async def get_all(self, filters: JobFilters, actor: UserRow) -> dict:
        stmt = await self.apply_filters(select(JobRow), filters, actor)
        if filters.count:
            return {"count": await self.jobs.count(stmt)}
        page = await self.jobs.paginate(
            stmt.order_by(JobRow.created_at.desc()), filters.page, settings.page_size
        )
        page["items"] = [job_out(job) for job in page["items"]]
        return page

    async def _dashboard(self, stmt: Select, filters: JobFilters, actor: UserRow) -> dict:
        stmt = await self.apply_filters(stmt, filters, actor)
        page = await self.jobs.paginate(
            stmt.order_by(JobRow.created_at.desc()), filters.page, settings.page_size
        )
        page["items"] = [job_out(job) for job in page["items"]]
        return {
            "allJobs": page,
            "languages": [
                {"id": lang.id, "language": lang.language} for lang in await self.languages.list_active()
            ],
            "all_customers": await self.users.list_emails_by_type(UserType.CUSTOMER),
            "all_translators": await self.users.list_emails_by_type(UserType.TRANSLATOR),
            "requestdata": filters.model_dump(by_alias=True, exclude_none=True),
        }

    async def alerts(self, filters: JobFilters, actor: UserRow) -> dict:
        """Jobs whose recorded session ran at least twice the booked duration."""
        overrun = []
        for job in await self.jobs.list_all():
            minutes = session_minutes(job.session_time)
            if minutes is not None and minutes >= job.duration * 2:
                overrun.append(job.id)
        logger.info("%d jobs with overrun sessions", len(overrun))
        stmt = select(JobRow).where(JobRow.id.in_(overrun), JobRow.ignore.is_(False))
        return await self._dashboard(stmt, filters, actor)

    async def expired_unaccepted(self, filters: JobFilters, actor: UserRow) -> dict:
        """Pending future jobs nobody accepted that are not ignored for expiry."""
        stmt = select(JobRow).where(
            JobRow.status == JobStatus.PENDING,
            JobRow.due >= local_now(),
            JobRow.ignore_expired.is_(False),
        )
        return await self._dashboard(stmt, filters, actor)
