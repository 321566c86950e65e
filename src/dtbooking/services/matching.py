"""Matching engine: which translators may take a job, and which jobs a translator may take.

Eligibility combines job type, language, gender, certification level and the
customer's blacklist. No ranking is applied: candidates are returned unordered
and the first translator to accept wins.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.job import JobRow
from dtbooking.db.models.user import UserRow
from dtbooking.errors.exceptions import ValidationError
from dtbooking.models.enums import (
    YES,
    Certified,
    JobType,
    TranslatorLevel,
    TranslatorType,
)
from dtbooking.repositories.job_repo import JobRepository
from dtbooking.repositories.user_repo import BlacklistRepository, UserMetaRepository, UserRepository
from dtbooking.services.business_time import local_now

_CERTIFIED_LEVELS = [
    TranslatorLevel.CERTIFIED,
    TranslatorLevel.CERTIFIED_LAW,
    TranslatorLevel.CERTIFIED_HEALTH,
]
_LAYMAN_LEVELS = [TranslatorLevel.LAYMAN, TranslatorLevel.READ_COURSES]
_ALL_LEVELS = _CERTIFIED_LEVELS + _LAYMAN_LEVELS

_JOB_TYPE_TO_TRANSLATOR_TYPE = {
    JobType.PAID: TranslatorType.PROFESSIONAL,
    JobType.RWS: TranslatorType.RWS_TRANSLATOR,
    JobType.UNPAID: TranslatorType.VOLUNTEER,
}
_TRANSLATOR_TYPE_TO_JOB_TYPE = {v: k for k, v in _JOB_TYPE_TO_TRANSLATOR_TYPE.items()}


class JobTarget(StrEnum):
    """How a job's specific-translator targeting relates to one translator."""

    OPEN = "open"
    SPECIFIC_JOB = "SpecificJob"
    OTHER_TRANSLATOR = "other_translator"


class Availability(StrEnum):
    CAN_ACCEPT = "userCanAcceptJob"
    CANNOT_ACCEPT = "userCanNotAcceptJob"


def translator_levels(certified: str | None) -> list[str]:
    """Translator levels acceptable for a job's certification requirement."""
    if certified in (Certified.YES, Certified.BOTH):
        return list(_CERTIFIED_LEVELS)
    if certified in (Certified.LAW, Certified.N_LAW):
        return [TranslatorLevel.CERTIFIED_LAW]
    if certified in (Certified.HEALTH, Certified.N_HEALTH):
        return [TranslatorLevel.CERTIFIED_HEALTH]
    if certified == Certified.NORMAL:
        return list(_LAYMAN_LEVELS)
    return list(_ALL_LEVELS)


def certifications_accepting(level: str | None) -> list[str]:
    """Inverse of :func:`translator_levels` over the known certification values."""
    if not level:
        return []
    return [c.value for c in Certified if level in translator_levels(c)]


def translator_type_for_job(job_type: str) -> str:
    try:
        return _JOB_TYPE_TO_TRANSLATOR_TYPE[JobType(job_type)]
    except ValueError:
        raise ValidationError(f"Unknown job type '{job_type}'") from None


def job_type_for_translator(translator_type: str | None) -> str:
    try:
        return _TRANSLATOR_TYPE_TO_JOB_TYPE[TranslatorType(translator_type)]
    except ValueError:
        return JobType.UNPAID


def same_town(job_town: str | None, translator_town: str | None) -> bool:
    if not job_town or not translator_town:
        return False
    return job_town.strip().casefold() == translator_town.strip().casefold()


def is_physical_only(job: JobRow) -> bool:
    return job.customer_physical_type == YES and job.customer_phone_type != YES


def overlaps(a: JobRow, b: JobRow) -> bool:
    a_end = a.due + timedelta(minutes=a.duration)
    b_end = b.due + timedelta(minutes=b.duration)
    return a.due < b_end and b.due < a_end


@dataclass
class PotentialJob:
    job: JobRow
    specific_job: JobTarget
    check_particular_job: Availability


class MatchingEngine:
    def __init__(self, session: AsyncSession):
        self.jobs = JobRepository(session)
        self.users = UserRepository(session)
        self.meta = UserMetaRepository(session)
        self.blacklist = BlacklistRepository(session)

    async def get_potential_translators(self, job: JobRow) -> list[UserRow]:
        translator_type = translator_type_for_job(job.job_type)
        excluded = await self.blacklist.translator_ids_for_customer(job.user_id)
        return await self.users.list_potential_translators(
            translator_type=translator_type,
            language_id=job.from_language_id,
            gender=job.gender,
            levels=translator_levels(job.certified),
            exclude_ids=excluded,
        )

    async def is_translator_already_booked(self, translator_id: int, job: JobRow) -> bool:
        booked = await self.jobs.list_booked_for_translator(translator_id, exclude_job_id=job.id)
        return any(overlaps(job, other) for other in booked)

    async def check_particular_job(self, translator_id: int, job: JobRow) -> Availability:
        if await self.is_translator_already_booked(translator_id, job):
            return Availability.CANNOT_ACCEPT
        return Availability.CAN_ACCEPT

    @staticmethod
    def targeting(job: JobRow, translator_id: int) -> JobTarget:
        if job.specific_translator_id is None:
            return JobTarget.OPEN
        if job.specific_translator_id == translator_id:
            return JobTarget.SPECIFIC_JOB
        return JobTarget.OTHER_TRANSLATOR

    async def check_towns(self, job: JobRow, translator_id: int) -> bool:
        job_town = job.town
        if not job_town:
            job_town = await self.meta.get_value(job.user_id, "city")
        return same_town(job_town, await self.meta.get_value(translator_id, "city"))

    async def _target_still_available(self, job: JobRow) -> bool:
        target = await self.users.get(job.specific_translator_id)
        if target is None or target.status != 1:
            return False
        return not await self.is_translator_already_booked(target.id, job)

    async def get_potential_jobs(self, translator: UserRow, now: datetime | None = None) -> list[PotentialJob]:
        meta = await self.meta.get(translator.id)
        if meta is None:
            return []
        candidates = await self.jobs.list_eligible_pending(
            translator_id=translator.id,
            job_type=job_type_for_translator(meta.translator_type),
            language_ids=await self.meta.language_ids(translator.id),
            gender=meta.gender,
            certified_values=certifications_accepting(meta.translator_level),
            now=now or local_now(),
        )

        potential: list[PotentialJob] = []
        for job in candidates:
            target = self.targeting(job, translator.id)
            availability = await self.check_particular_job(translator.id, job)
            if target == JobTarget.SPECIFIC_JOB and availability == Availability.CANNOT_ACCEPT:
                continue
            if target == JobTarget.OTHER_TRANSLATOR and await self._target_still_available(job):
                continue
            if is_physical_only(job) and not await self.check_towns(job, translator.id):
                continue
            potential.append(PotentialJob(job, target, availability))
        return potential

    async def is_potential_job(self, translator: UserRow, job_id: int) -> bool:
        return any(p.job.id == job_id for p in await self.get_potential_jobs(translator))
