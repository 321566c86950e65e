"""Job status state machine.

``transition`` is pure: given the current status, the requested status and the
context of the update, it returns either a ``StatusChange`` describing the new
status and the side effects the caller must perform, or ``Unchanged`` with the
reason nothing was applied. Every ``JobStatus`` member has a handler.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.db.models.user import UserRow
from dtbooking.models.enums import JobStatus

_SESSION_TIME = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


class Effect(StrEnum):
    # Acceptance mails to customer and new translator, session reminder pushes
    ACCEPTED_EMAILS = "accepted_emails"
    ACCEPTED_EMAIL_CUSTOMER = "accepted_email_customer"
    SESSION_REMINDERS = "session_reminders"
    CANCELLATION_EMAIL_CUSTOMER = "cancellation_email_customer"
    WITHDRAW_EMAILS = "withdraw_emails"
    SESSION_ENDED_EMAILS = "session_ended_emails"
    # Reset creation time and reminder flags, mail customer, notify translators
    REOPEN = "reopen"


@dataclass(frozen=True)
class TransitionContext:
    translator_changed: bool = False
    admin_comments: str | None = None
    session_time: str | None = None

    @property
    def has_comment(self) -> bool:
        return bool(self.admin_comments and self.admin_comments.strip())


@dataclass(frozen=True)
class StatusChange:
    old_status: JobStatus
    new_status: JobStatus
    effects: tuple[Effect, ...] = ()
    set_admin_comments: bool = False
    session_time: str | None = None

    def log_data(self) -> dict:
        return {"old_status": self.old_status.value, "new_status": self.new_status.value}


@dataclass(frozen=True)
class Unchanged:
    reason: str


TransitionResult = StatusChange | Unchanged
_Handler = Callable[[JobStatus, TransitionContext], TransitionResult]

_COMMENT_REQUIRED = "admin comment required"


def _from_pending(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.ASSIGNED:
        if not ctx.translator_changed:
            return Unchanged("no translator assigned")
        return StatusChange(
            JobStatus.PENDING,
            requested,
            (Effect.ACCEPTED_EMAILS, Effect.SESSION_REMINDERS),
            set_admin_comments=True,
        )
    if requested == JobStatus.TIMEDOUT and not ctx.has_comment:
        return Unchanged(_COMMENT_REQUIRED)
    return StatusChange(
        JobStatus.PENDING,
        requested,
        (Effect.CANCELLATION_EMAIL_CUSTOMER,),
        set_admin_comments=True,
    )


def _from_assigned(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested in (JobStatus.WITHDRAW_BEFORE_24, JobStatus.WITHDRAW_AFTER_24):
        return StatusChange(
            JobStatus.ASSIGNED,
            requested,
            (Effect.WITHDRAW_EMAILS,),
            set_admin_comments=True,
        )
    if requested == JobStatus.TIMEDOUT:
        if not ctx.has_comment:
            return Unchanged(_COMMENT_REQUIRED)
        return StatusChange(JobStatus.ASSIGNED, requested, set_admin_comments=True)
    return Unchanged(f"assigned job cannot move to {requested}")


def _from_started(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested != JobStatus.COMPLETED:
        return Unchanged(f"started job cannot move to {requested}")
    if not ctx.has_comment:
        return Unchanged(_COMMENT_REQUIRED)
    if not ctx.session_time or not _SESSION_TIME.match(ctx.session_time.strip()):
        return Unchanged("session time required")
    return StatusChange(
        JobStatus.STARTED,
        requested,
        (Effect.SESSION_ENDED_EMAILS,),
        set_admin_comments=True,
        session_time=ctx.session_time.strip(),
    )


def _from_completed(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested != JobStatus.TIMEDOUT:
        return Unchanged(f"completed job cannot move to {requested}")
    if not ctx.has_comment:
        return Unchanged(_COMMENT_REQUIRED)
    return StatusChange(JobStatus.COMPLETED, requested, set_admin_comments=True)


def _from_timedout(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.PENDING:
        return StatusChange(JobStatus.TIMEDOUT, requested, (Effect.REOPEN,))
    if ctx.translator_changed:
        return StatusChange(JobStatus.TIMEDOUT, requested, (Effect.ACCEPTED_EMAIL_CUSTOMER,))
    return Unchanged(f"timed out job cannot move to {requested} without a translator")


def _from_withdraw_after_24(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
    if requested != JobStatus.TIMEDOUT:
        return Unchanged(f"withdrawn job cannot move to {requested}")
    if not ctx.has_comment:
        return Unchanged(_COMMENT_REQUIRED)
    return StatusChange(JobStatus.WITHDRAW_AFTER_24, requested, set_admin_comments=True)


def _terminal(current: JobStatus) -> _Handler:
    def handler(requested: JobStatus, ctx: TransitionContext) -> TransitionResult:
        return Unchanged(f"{current} is final")

    return handler


_HANDLERS: dict[JobStatus, _Handler] = {
    JobStatus.PENDING: _from_pending,
    JobStatus.ASSIGNED: _from_assigned,
    JobStatus.STARTED: _from_started,
    JobStatus.COMPLETED: _from_completed,
    JobStatus.TIMEDOUT: _from_timedout,
    JobStatus.WITHDRAW_AFTER_24: _from_withdraw_after_24,
    JobStatus.WITHDRAW_BEFORE_24: _terminal(JobStatus.WITHDRAW_BEFORE_24),
    JobStatus.NOT_CARRIED_OUT_CUSTOMER: _terminal(JobStatus.NOT_CARRIED_OUT_CUSTOMER),
}

_missing = set(JobStatus) - set(_HANDLERS)
if _missing:
    raise RuntimeError(f"No transition handler for: {sorted(_missing)}")


def transition(current: str, requested: str, ctx: TransitionContext) -> TransitionResult:
    """Decide whether ``current`` may move to ``requested``."""
    try:
        current_status = JobStatus(current)
        requested_status = JobStatus(requested)
    except ValueError as exc:
        return Unchanged(str(exc))
    if current_status == requested_status:
        return Unchanged("status not changed")
    return _HANDLERS[current_status](requested_status, ctx)


@dataclass
class UpdateResult:
    """Outcome of an admin booking update."""

    status_change: str = "not_requested"  # "applied" | "unchanged" | "not_requested"
    reason: str | None = None
    changes: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class TranslatorChange:
    """A reassignment that cancelled ``old_translator``'s relation and appended a new one."""

    old_translator: UserRow | None
    new_translator: UserRow
    relation: TranslatorJobRelRow

    def log_data(self) -> dict:
        return {
            "old_translator": self.old_translator.email if self.old_translator else None,
            "new_translator": self.new_translator.email,
        }


@dataclass(frozen=True)
class NoReassignment:
    reason: str


Reassignment = TranslatorChange | NoReassignment
