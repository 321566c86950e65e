"""Pydantic request and response models for bookings."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dtbooking.models.enums import JobStatus


def flag_is_set(value) -> bool:
    """Booking forms send checkboxes as ``true``/``yes``/``on`` or omit them."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class BookingCreate(BaseModel):
    """Booking submission.

    Required-field rules depend on ``immediate`` and are checked by the
    booking service so failures carry the Swedish form messages.
    """

    model_config = ConfigDict(extra="ignore")

    from_language_id: int | None = None
    immediate: str = "no"
    due_date: str | None = None
    due_time: str | None = None
    duration: int | None = Field(default=None, gt=0)
    customer_phone_type: bool | str | None = None
    customer_physical_type: bool | str | None = None
    job_for: list[str] = Field(default_factory=list)
    by_admin: str | None = None
    town: str | None = None
    address: str | None = None
    instructions: str | None = None
    specific_translator_id: int | None = None


class JobUpdate(BaseModel):
    """Admin edit of a booking. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    translator: int | None = None
    translator_email: str | None = None
    due: str | None = None
    from_language_id: int | None = None
    status: JobStatus | None = None
    admin_comments: str | None = None
    reference: str | None = None
    session_time: str | None = Field(default=None, alias="sesion_time")


class JobEmailRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_email_job_id: int
    user_type: str | None = None
    user_email: EmailStr | None = None
    reference: str | None = None
    address: str | None = None
    instructions: str | None = None
    town: str | None = None


class JobActionRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    job_id: int = Field(..., alias="jobid")


class IgnoreRequest(BaseModel):
    type: str


class DistanceFeedRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jobid: int
    distance: str | None = None
    time: str | None = None
    session_time: str | None = None
    admincomment: str | None = None
    flagged: bool | str | None = None
    manually_handled: bool | str | None = None
    by_admin: bool | str | None = None


class JobFilters(BaseModel):
    """Dashboard listing filters."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # Own-jobs listing for this user instead of the filtered listing
    user_id: int | None = None
    id: list[int] | None = None
    lang: list[int] | None = None
    status: list[str] | None = None
    job_type: list[str] | None = None
    customer_email: str | None = None
    translator_email: list[str] | None = None
    filter_timetype: str | None = Field(default=None, pattern=r"^(created|due)$")
    from_: str | None = Field(default=None, alias="from")
    to: str | None = None
    expired_at: str | None = None
    will_expire_at: str | None = None
    physical: str | None = None
    phone: str | None = None
    flagged: str | None = None
    distance: str | None = None
    consumer_type: str | None = None
    booking_type: str | None = Field(default=None, pattern=r"^(phone|physical)$")
    count: bool = False
    page: int = Field(default=1, ge=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_type: str
    email: str
    name: str


class RelationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    job_id: int
    cancel_at: datetime | None = None
    completed_at: datetime | None = None
    completed_by: int | None = None
    user: UserOut | None = None


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    from_language_id: int
    due: datetime
    duration: int
    immediate: str
    status: str
    gender: str | None = None
    certified: str | None = None
    job_type: str
    customer_phone_type: str
    customer_physical_type: str
    town: str | None = None
    address: str | None = None
    instructions: str | None = None
    user_email: str | None = None
    reference: str | None = None
    admin_comments: str | None = None
    flagged: str
    session_time: str | None = None
    by_admin: str
    manually_handled: str
    specific_translator_id: int | None = None
    will_expire_at: datetime | None = None
    expired_at: datetime | None = None
    end_at: datetime | None = None
    withdraw_at: datetime | None = None
    created_at: datetime | None = None
    language: str | None = None
    usercheck: str | None = None
    specific_job: str | None = None
    check_particular_job: str | None = None
    translator_job_rel: list[RelationOut] | None = None


def job_out(job, **extra) -> dict:
    """Serialise a job row for a response envelope."""
    data = JobOut.model_validate(job).model_dump()
    data.update(extra)
    return JobOut.model_validate(data).model_dump(mode="json", exclude_none=True)
