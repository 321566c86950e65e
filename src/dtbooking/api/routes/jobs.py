"""Booking endpoints."""

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.db.models.user import UserRow
from dtbooking.dependencies import (
    Bookings,
    CurrentUser,
    JobQueries,
    RequireAdmin,
    RequireTranslator,
    get_db,
)
from dtbooking.errors.exceptions import AuthorizationError
from dtbooking.models.common import ApiResponse
from dtbooking.models.enums import ADMIN_USER_TYPES
from dtbooking.models.job import (
    BookingCreate,
    DistanceFeedRequest,
    JobActionRequest,
    JobEmailRequest,
    JobFilters,
    JobUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Jobs"])


def _envelope(message: str, data) -> dict:
    return ApiResponse(message=message, data=data).model_dump(mode="json")


def _not_found(message: str = "No data found") -> JSONResponse:
    return JSONResponse(status_code=404, content=_envelope(message, []))


@router.get("/jobs")
async def list_jobs(
    filters: Annotated[JobFilters, Query()],
    user: CurrentUser,
    bookings: Bookings,
    queries: JobQueries,
):
    response: dict = {}
    if filters.user_id is not None and filters.user_id == user.id:
        response = await bookings.get_users_jobs(user.id)
    elif user.user_type in ADMIN_USER_TYPES:
        response = await queries.get_all(filters, user)
    if not response:
        return _not_found()
    return _envelope("All available user jobs", response)


@router.get("/jobs/history")
async def job_history(
    bookings: Bookings,
    user: CurrentUser,
    user_id: int | None = None,
    page: int = Query(default=1, ge=1),
):
    if user_id is None:
        return _not_found()
    if user_id != user.id and user.user_type not in ADMIN_USER_TYPES:
        raise AuthorizationError("Job history is only visible to its owner")
    data = await bookings.get_users_jobs_history(user_id, page)
    return _envelope("User's job history", data)


@router.get("/jobs/potential")
async def potential_jobs(
    bookings: Bookings,
    translator: UserRow = RequireTranslator,
) -> dict:
    return _envelope("Potential jobs", await bookings.get_potential_jobs(translator))


@router.get("/jobs/{job_id}")
async def show_job(job_id: int, bookings: Bookings, user: CurrentUser) -> dict:
    return _envelope("Job details", await bookings.get_job_detail(job_id, user))


@router.post("/jobs")
async def store_job(
    body: BookingCreate,
    bookings: Bookings,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.store(user, body)
    await db.commit()
    return _envelope("Jobbet har lagts till", data)


@router.put("/jobs/{job_id}")
async def update_job(
    job_id: int,
    body: JobUpdate,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await bookings.update_job(job_id, body, admin)
    await db.commit()
    return {**_envelope("Job details has been updated", ["Updated"]), **asdict(result)}


@router.post("/jobs/immediate-job-email")
async def immediate_job_email(
    body: JobEmailRequest,
    bookings: Bookings,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.store_job_email(body)
    if data.get("fail"):
        return data
    await db.commit()
    return _envelope("Immediate job has been added", data)


@router.post("/jobs/accept")
async def accept_job(
    body: JobActionRequest,
    bookings: Bookings,
    translator: UserRow = RequireTranslator,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.accept_job(body.job_id, translator)
    await db.commit()
    return _envelope("Job has been added to accepted list", data)


@router.post("/jobs/accept-with-id")
async def accept_job_with_id(
    body: JobActionRequest,
    bookings: Bookings,
    translator: UserRow = RequireTranslator,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.accept_job_with_id(body.job_id, translator)
    await db.commit()
    return _envelope("Job has been added to accepted list", data)


@router.post("/jobs/cancel")
async def cancel_job(
    body: JobActionRequest,
    bookings: Bookings,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.cancel_job(body.job_id, user)
    await db.commit()
    return _envelope("Job has been cancelled", data)


@router.post("/jobs/end")
async def end_job(
    body: JobActionRequest,
    bookings: Bookings,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.end_job(body.job_id, user.id)
    await db.commit()
    return _envelope("Job has been ended", data)


@router.post("/jobs/customer-not-call")
async def customer_not_call(
    body: JobActionRequest,
    bookings: Bookings,
    translator: UserRow = RequireTranslator,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.customer_not_call(body.job_id)
    await db.commit()
    return _envelope("Job has been completed by translator", data)


@router.post("/jobs/reopen")
async def reopen_job(
    body: JobActionRequest,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
    db: AsyncSession = Depends(get_db),
) -> dict:
    data = await bookings.reopen(body.job_id, admin.id)
    await db.commit()
    return _envelope("Job has been re-opened", data)


@router.post("/jobs/distance-feed")
async def distance_feed(
    body: DistanceFeedRequest,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await bookings.distance_feed(body)
    await db.commit()
    return _envelope("Record updated successfully", [])


@router.post("/jobs/resend-notifications")
async def resend_notifications(
    body: JobActionRequest,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
) -> dict:
    return await bookings.resend_notifications(body.job_id)


@router.post("/jobs/resend-sms")
async def resend_sms_notifications(
    body: JobActionRequest,
    bookings: Bookings,
    admin: UserRow = RequireAdmin,
) -> dict:
    return await bookings.resend_sms_notifications(body.job_id)
