"""Admin dashboards over bookings."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.user import UserRow
from dtbooking.dependencies import Bookings, JobQueries, RequireAdmin, get_db
from dtbooking.models.job import IgnoreRequest, JobFilters

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/jobs/alerts")
async def session_alerts(
    filters: Annotated[JobFilters, Query()],
    queries: JobQueries,
    admin: UserRow = RequireAdmin,
) -> dict:
    return await queries.alerts(filters, admin)


@router.get("/jobs/expired")
async def expired_unaccepted(
    filters: Annotated[JobFilters, Query()],
    queries: JobQueries,
    admin: UserRow = RequireAdmin,
) -> dict:
    return await queries.expired_unaccepted(filters, admin)


@router.post("/jobs/{job_id}/ignore")
async def ignore_job(
    job_id: int,
    body: IgnoreRequest,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
    db: AsyncSession = Depends(get_db),
) -> list[str]:
    result = await bookings.ignore_job(job_id, body.type)
    await db.commit()
    return result


@router.post("/jobs/{job_id}/notify-expired")
async def notify_expired(
    job_id: int,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await bookings.notify_expired(job_id)
    await db.commit()
    return result
