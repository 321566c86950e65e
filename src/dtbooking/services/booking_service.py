"""Booking lifecycle operations.

``BookingService`` owns one database session and the injected notification
transports. Methods flush but never commit; the caller decides the
transaction boundary.
"""

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.config import settings
from dtbooking.db.models.job import JobRow
from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.db.models.user import UserRow
from dtbooking.errors.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    DownstreamError,
    NotFoundError,
    ValidationError,
)
from dtbooking.logging_config import ADMIN_LOGGER
from dtbooking.models.enums import (
    ACTIVE_STATUSES,
    ADMIN_USER_TYPES,
    HISTORIC_STATUSES,
    NO,
    YES,
    Certified,
    ConsumerType,
    Gender,
    JobStatus,
    JobType,
    UserType,
)
from dtbooking.models.job import (
    BookingCreate,
    DistanceFeedRequest,
    JobEmailRequest,
    JobUpdate,
    RelationOut,
    UserOut,
    flag_is_set,
    job_out,
)
from dtbooking.notifications import messages
from dtbooking.notifications.base import Mailer, PushSender, SmsSender
from dtbooking.notifications.dispatcher import NotificationDispatcher
from dtbooking.repositories.job_repo import DistanceRepository, JobRepository
from dtbooking.repositories.translator_repo import TranslatorRelationRepository
from dtbooking.repositories.user_repo import LanguageRepository, UserMetaRepository, UserRepository
from dtbooking.services.business_time import (
    format_due,
    hours_between,
    local_now,
    parse_booking_due,
    parse_due,
    session_interval,
    session_time_text,
    will_expire_at,
)
from dtbooking.services.lifecycle import (
    Effect,
    NoReassignment,
    Reassignment,
    StatusChange,
    TransitionContext,
    TranslatorChange,
    Unchanged,
    UpdateResult,
    transition,
)
from dtbooking.services.matching import MatchingEngine

logger = logging.getLogger(__name__)
admin_logger = logging.getLogger(ADMIN_LOGGER)

_GENDER_LABELS = {Gender.MALE: "Man", Gender.FEMALE: "Kvinna"}


def certified_from_job_for(job_for: list[str]) -> str:
    """Derive the certification requirement from the booking form's choices."""
    chosen = set(job_for)
    if {"normal", "certified"} <= chosen:
        return Certified.BOTH
    if {"certified_in_law", "certified"} <= chosen:
        return Certified.LAW
    if {"certified_in_helth", "certified"} <= chosen:
        return Certified.HEALTH
    if {"certified_in_law", "normal"} <= chosen:
        return Certified.N_LAW
    if {"certified_in_helth", "normal"} <= chosen:
        return Certified.N_HEALTH
    return Certified.NORMAL


def job_type_for_consumer(consumer_type: str | None) -> str:
    if consumer_type == ConsumerType.RWS_CONSUMER:
        return JobType.RWS
    if consumer_type == ConsumerType.NGO:
        return JobType.UNPAID
    return JobType.PAID


def job_for_labels(gender: str | None, certified: str | None) -> list[str]:
    """Swedish requirement labels shown in translator notifications."""
    labels = []
    if gender in _GENDER_LABELS:
        labels.append(_GENDER_LABELS[gender])
    if certified is None:
        return labels
    if certified == Certified.BOTH:
        labels += ["Godkänd tolk", "Auktoriserad"]
    elif certified == Certified.YES:
        labels.append("Auktoriserad")
    elif certified == Certified.N_HEALTH:
        labels.append("Sjukvårdstolk")
    elif certified in (Certified.LAW, Certified.N_LAW):
        labels.append("Rätttstolk")
    else:
        labels.append(certified)
    return labels


def _fail(message: str) -> dict:
    return {"status": "fail", "message": message}


class BookingService:
    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer,
        push: PushSender,
        sms: SmsSender,
    ):
        self.session = session
        self.jobs = JobRepository(session)
        self.relations = TranslatorRelationRepository(session)
        self.users = UserRepository(session)
        self.meta = UserMetaRepository(session)
        self.languages = LanguageRepository(session)
        self.distances = DistanceRepository(session)
        self.matching = MatchingEngine(session)
        self.notifier = NotificationDispatcher(session, mailer, push, sms)

    async def get_job(self, job_id: int) -> JobRow:
        job = await self.jobs.get(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    # ------------------------------------------------------------------
    # Booking submission
    # ------------------------------------------------------------------

    async def store(self, user: UserRow, data: BookingCreate) -> dict:
        """Create a booking for a customer.

        Business validation failures raise ``BusinessRuleError`` carrying the
        Swedish form message and the offending field.
        """
        if user.user_type != UserType.CUSTOMER:
            raise BusinessRuleError(messages.TRANSLATOR_CANNOT_BOOK)

        immediate = data.immediate == YES
        phone = flag_is_set(data.customer_phone_type)
        physical = flag_is_set(data.customer_physical_type)
        self._validate_booking(data, immediate, phone, physical)

        now = local_now()
        response: dict[str, Any] = {"customer_physical_type": YES if physical else NO}
        if immediate:
            due = now + timedelta(minutes=settings.immediate_job_minutes)
            phone = True
            response["type"] = "immediate"
        else:
            try:
                due = parse_booking_due(data.due_date, data.due_time)
            except ValueError:
                raise BusinessRuleError(messages.FILL_ALL_FIELDS, "due_date") from None
            response["type"] = "regular"
            if due < now:
                raise BusinessRuleError(messages.CANNOT_BOOK_IN_PAST)

        meta = await self.meta.get(user.id)
        gender = next((g for g in data.job_for if g in (Gender.MALE, Gender.FEMALE)), None)
        job = await self.jobs.create(
            user_id=user.id,
            from_language_id=data.from_language_id,
            due=due,
            duration=data.duration,
            immediate=YES if immediate else NO,
            status=JobStatus.PENDING,
            gender=gender,
            certified=certified_from_job_for(data.job_for),
            job_type=job_type_for_consumer(meta.consumer_type if meta else None),
            customer_phone_type=YES if phone else NO,
            customer_physical_type=YES if physical else NO,
            town=data.town,
            address=data.address,
            instructions=data.instructions,
            by_admin=data.by_admin or NO,
            specific_translator_id=data.specific_translator_id,
            will_expire_at=will_expire_at(due, now),
        )
        logger.info("Booking %s created by user %s", job.id, user.id)

        job_for: list = []
        if job.gender:
            job_for.append(_GENDER_LABELS[job.gender])
        if job.certified == Certified.BOTH:
            job_for.append([Certified.NORMAL.value, "certified"])
        elif job.certified == Certified.YES:
            job_for.append(["certified"])
        elif job.certified:
            job_for.append([job.certified])
        response.update(
            status="success",
            id=job.id,
            job_for=job_for,
            customer_town=meta.city if meta else None,
            customer_type=meta.customer_type if meta else None,
        )

        if immediate:
            await self.notifier.notify_suitable_translators(job, await self.job_to_data(job))
        return response

    @staticmethod
    def _validate_booking(data: BookingCreate, immediate: bool, phone: bool, physical: bool) -> None:
        if data.from_language_id is None:
            raise BusinessRuleError(messages.FILL_ALL_FIELDS, "from_language_id")
        if not immediate:
            if not data.due_date:
                raise BusinessRuleError(messages.FILL_ALL_FIELDS, "due_date")
            if not data.due_time:
                raise BusinessRuleError(messages.FILL_ALL_FIELDS, "due_time")
        if data.duration is None:
            raise BusinessRuleError(messages.FILL_ALL_FIELDS, "duration")
        if not phone and not physical:
            raise BusinessRuleError(messages.MAKE_A_CHOICE, "customer_phone_type")

    async def store_job_email(self, data: JobEmailRequest) -> dict:
        """Attach contact details to a booking, confirm it by email and announce it."""
        job = await self.jobs.get(data.user_email_job_id)
        if job is None:
            return {"fail": True, "status": "error", "message": "Jobdetaljer hittades inte"}

        job.user_email = data.user_email
        job.reference = data.reference or ""
        customer = await self.users.get(job.user_id)
        if data.address:
            meta = await self.meta.get(job.user_id)
            job.address = data.address
            job.instructions = data.instructions or (meta.instructions if meta else None)
            job.town = data.town or (meta.city if meta else None)
        await self.session.flush()

        await self.notifier.mail(
            job.user_email or customer.email,
            customer.name,
            messages.subject_job_created(job.id),
            "job-created",
            {"user": customer, "job": job},
        )
        await self.notifier.notify_suitable_translators(job, await self.job_to_data(job))
        return {"type": data.user_type, "job": job_out(job), "status": "success"}

    async def job_to_data(self, job: JobRow) -> dict:
        """Flatten a booking into the payload carried by translator notifications."""
        due = format_due(job.due)
        due_date, _, due_time = due.partition(" ")
        customer_type = await self.meta.get_value(job.user_id, "customer_type")
        return {
            "job_id": job.id,
            "from_language_id": job.from_language_id,
            "language": await self.languages.name(job.from_language_id),
            "immediate": job.immediate,
            "duration": job.duration,
            "status": job.status,
            "gender": job.gender,
            "certified": job.certified,
            "due": due,
            "due_date": due_date,
            "due_time": due_time,
            "job_type": job.job_type,
            "customer_phone_type": job.customer_phone_type,
            "customer_physical_type": job.customer_physical_type,
            "customer_town": job.town,
            "customer_type": customer_type,
            "job_for": job_for_labels(job.gender, job.certified),
        }

    # ------------------------------------------------------------------
    # Admin update
    # ------------------------------------------------------------------

    async def update_job(self, job_id: int, data: JobUpdate, actor: UserRow) -> UpdateResult:
        """Apply an admin edit: reassignment, due and language changes, then status.

        Notifications for due, translator and language changes are sent only
        while the booking is still in the future.
        """
        job = await self.get_job(job_id)
        changes: list[dict] = []

        current = await self.relations.get_current(job.id)
        reassignment = await self._change_translator(job, current, data)
        if isinstance(reassignment, TranslatorChange):
            changes.append(reassignment.log_data())

        old_due = format_due(job.due)
        date_changed = data.due is not None and data.due != old_due
        if date_changed:
            try:
                job.due = parse_due(data.due)
            except ValueError as exc:
                raise ValidationError(str(exc), details={"field": "due"}) from exc
            changes.append({"old_due": old_due, "new_due": data.due})

        old_lang = job.from_language_id
        lang_changed = data.from_language_id is not None and data.from_language_id != old_lang
        if lang_changed:
            changes.append(
                {
                    "old_lang": await self.languages.name(old_lang),
                    "new_lang": await self.languages.name(data.from_language_id),
                }
            )
            job.from_language_id = data.from_language_id

        result = UpdateResult()
        if data.status is not None:
            outcome = transition(
                job.status,
                data.status,
                TransitionContext(
                    translator_changed=isinstance(reassignment, TranslatorChange),
                    admin_comments=data.admin_comments,
                    session_time=data.session_time,
                ),
            )
            if isinstance(outcome, Unchanged):
                result.status_change = "unchanged"
                result.reason = outcome.reason
            else:
                await self._apply_status_change(job, outcome, data, actor)
                result.status_change = "applied"
                changes.append(outcome.log_data())

        if "admin_comments" in data.model_fields_set:
            job.admin_comments = data.admin_comments
        if "reference" in data.model_fields_set:
            job.reference = data.reference
        await self.session.flush()

        admin_logger.info(
            "USER #%s (%s) has been updated booking #%s",
            actor.id,
            actor.name,
            job.id,
            extra={"job_id": job.id, "changes": changes},
        )
        result.changes = changes

        if job.due >= local_now():
            if date_changed:
                await self.notifier.changed_date(job, old_due)
            if isinstance(reassignment, TranslatorChange):
                await self.notifier.changed_translator(
                    job, reassignment.old_translator, reassignment.new_translator
                )
            if lang_changed:
                await self.notifier.changed_language(job, old_lang)
        return result

    async def _change_translator(
        self, job: JobRow, current: TranslatorJobRelRow | None, data: JobUpdate
    ) -> Reassignment:
        """Replace the assigned translator without mutating the existing relation.

        The current relation is stamped ``cancel_at`` and a new row is
        appended, so the assignment history stays auditable.
        """
        translator_id = data.translator or None
        if translator_id is None and data.translator_email:
            found = await self.users.get_by_email(data.translator_email)
            if found is None:
                raise NotFoundError("Translator", data.translator_email)
            translator_id = found.id
        if translator_id is None:
            return NoReassignment("no translator requested")
        if current is not None and current.user_id == translator_id:
            return NoReassignment("translator unchanged")

        new_translator = await self.users.get(translator_id)
        if new_translator is None or new_translator.user_type != UserType.TRANSLATOR:
            raise NotFoundError("Translator", translator_id)

        old_translator = None
        extra: dict[str, Any] = {}
        if current is not None:
            old_translator = await self.users.get(current.user_id)
            if current.cancel_at is None:
                await self.relations.cancel(current, local_now())
            extra = {"completed_at": current.completed_at, "completed_by": current.completed_by}
        try:
            relation = await self.relations.append(translator_id, job.id, **extra)
        except IntegrityError as exc:
            raise ConflictError(f"Job {job.id} already has an active translator") from exc
        return TranslatorChange(old_translator, new_translator, relation)

    async def _apply_status_change(
        self, job: JobRow, change: StatusChange, data: JobUpdate, actor: UserRow
    ) -> None:
        job.status = change.new_status
        if change.set_admin_comments:
            job.admin_comments = data.admin_comments
        if change.session_time:
            job.session_time = change.session_time
            job.end_at = local_now()
        await self.session.flush()

        for effect in change.effects:
            await self._run_effect(effect, job, actor)

    async def _run_effect(self, effect: Effect, job: JobRow, actor: UserRow) -> None:
        notifier = self.notifier
        if effect == Effect.ACCEPTED_EMAILS:
            subject = messages.subject_job_accepted(job.id)
            await notifier.mail_customer(job, subject, "job-accepted")
            translator = await notifier.active_translator(job)
            if translator is not None:
                await notifier.mail_user(translator, job, subject, "job-changed-translator-new-translator")
        elif effect == Effect.SESSION_REMINDERS:
            customer = await self.users.get(job.user_id)
            translator = await notifier.active_translator(job)
            for user in (customer, translator):
                if user is not None:
                    await notifier.session_start_reminder(user, job)
        elif effect == Effect.CANCELLATION_EMAIL_CUSTOMER:
            await notifier.mail_customer(
                job,
                messages.subject_job_cancelled(job.id),
                "status-changed-from-pending-or-assigned-customer",
            )
        elif effect == Effect.WITHDRAW_EMAILS:
            subject = messages.subject_job_cancelled(job.id)
            await notifier.mail_customer(job, subject, "status-changed-from-pending-or-assigned-customer")
            translator = await notifier.active_translator(job)
            if translator is not None:
                await notifier.mail_user(translator, job, subject, "job-cancel-translator")
        elif effect == Effect.SESSION_ENDED_EMAILS:
            await self._session_ended(job, completed_by=actor.id)
        elif effect == Effect.REOPEN:
            job.created_at = local_now()
            job.emailsent = False
            job.emailsenttovirpal = False
            await self.session.flush()
            language = await self.languages.name(job.from_language_id)
            await notifier.mail_customer(
                job,
                messages.subject_reopened(language, job.duration, job.id),
                "job-change-status-to-customer",
            )
            await notifier.notify_suitable_translators(job, await self.job_to_data(job))
        elif effect == Effect.ACCEPTED_EMAIL_CUSTOMER:
            await notifier.mail_customer(job, messages.subject_job_accepted(job.id), "job-accepted")

    async def _session_ended(self, job: JobRow, completed_by: int) -> None:
        """Mail both parties the session time and close the active relation."""
        subject = messages.subject_session_ended(job.id)
        text = session_time_text(job.session_time)
        await self.notifier.mail_customer(job, subject, "session-ended", session_time=text, for_text="faktura")
        relation = await self.relations.get_active(job.id)
        if relation is None:
            logger.warning("Job %s ended without an active translator", job.id)
            return
        translator = await self.users.get(relation.user_id)
        if translator is not None:
            await self.notifier.mail_user(
                translator, job, subject, "session-ended", session_time=text, for_text="lön"
            )
        await self.relations.complete(relation, job.end_at or local_now(), completed_by)

    # ------------------------------------------------------------------
    # Translator actions
    # ------------------------------------------------------------------

    async def _claim(self, job: JobRow, translator: UserRow) -> bool:
        """Atomically move ``job`` from pending to assigned and record the translator.

        Only the writer whose conditional update matched inserts the relation.
        """
        if not await self.jobs.compare_and_set_status(job.id, JobStatus.PENDING, JobStatus.ASSIGNED):
            logger.info("Job %s no longer pending, accept by %s rejected", job.id, translator.id)
            return False
        try:
            await self.relations.append(translator.id, job.id)
        except IntegrityError as exc:
            raise ConflictError(f"Job {job.id} already has an active translator") from exc
        await self.jobs.refresh(job)
        logger.info("Job %s accepted by translator %s", job.id, translator.id)
        return True

    async def accept_job(self, job_id: int, translator: UserRow) -> dict:
        job = await self.get_job(job_id)
        if await self.matching.is_translator_already_booked(translator.id, job):
            return _fail(messages.ALREADY_BOOKED)
        if not await self._claim(job, translator):
            return _fail(messages.ALREADY_BOOKED)

        await self.notifier.mail_customer(job, messages.subject_job_accepted(job.id), "job-accepted")
        potential = await self.matching.get_potential_jobs(translator)
        return {
            "status": "success",
            "list": {"jobs": [job_out(p.job) for p in potential], "job": job_out(job)},
        }

    async def accept_job_with_id(self, job_id: int, translator: UserRow) -> dict:
        job = await self.get_job(job_id)
        language = await self.languages.name(job.from_language_id)
        due = format_due(job.due)
        if await self.matching.is_translator_already_booked(translator.id, job):
            return _fail(messages.already_booked_at(due))
        if not await self._claim(job, translator):
            return _fail(messages.already_accepted_by_other(language, job.duration, due))

        await self.notifier.mail_customer(job, messages.subject_job_accepted(job.id), "job-accepted")
        customer = await self.users.get(job.user_id)
        if customer is not None:
            await self.notifier.job_accepted_push(job, customer)
        return {
            "status": "success",
            "list": {"job": job_out(job)},
            "message": messages.accepted_with_id(language, job.duration, due),
        }

    async def cancel_job(self, job_id: int, actor: UserRow) -> dict:
        """Withdraw a booking as its customer, or hand it back as its translator.

        A translator may only hand a booking back more than 24 hours ahead; the
        booking then returns to pending and is offered to other translators.
        """
        job = await self.get_job(job_id)
        if job.status not in ACTIVE_STATUSES:
            raise ConflictError(f"Job {job.id} is already '{job.status}'")
        now = local_now()

        if actor.user_type == UserType.CUSTOMER:
            if job.user_id != actor.id:
                raise AuthorizationError("Only the booking's customer can withdraw it")
            translator = await self.notifier.active_translator(job)
            job.withdraw_at = now
            # No differential billing between the two withdraw states yet
            if hours_between(now, job.due) >= 24:
                job.status = JobStatus.WITHDRAW_BEFORE_24
            else:
                job.status = JobStatus.WITHDRAW_AFTER_24
            await self.session.flush()
            logger.info("Job %s withdrawn by customer (%s)", job.id, job.status)
            if translator is not None:
                await self.notifier.job_cancelled_push(job, translator, by_customer=True)
            return {"status": "success", "jobstatus": "success"}

        # Fractional hours, so a session 24.5 hours away can still be handed back
        if hours_between(now, job.due) <= 24:
            return _fail(messages.late_cancellation())

        relation = await self.relations.get_active(job.id)
        if relation is None:
            raise NotFoundError("Translator relation", job.id)
        if actor.user_type == UserType.TRANSLATOR and relation.user_id != actor.id:
            raise AuthorizationError("Job is assigned to another translator")

        job.status = JobStatus.PENDING
        job.created_at = now
        job.will_expire_at = will_expire_at(job.due, now)
        await self.relations.cancel(relation, now)
        logger.info("Job %s handed back by translator %s", job.id, relation.user_id)

        customer = await self.users.get(job.user_id)
        if customer is not None:
            await self.notifier.job_cancelled_push(job, customer, by_customer=False)
        await self.notifier.notify_suitable_translators(
            job, await self.job_to_data(job), exclude_user_id=relation.user_id
        )
        return {"status": "success"}

    async def end_job(self, job_id: int, actor_id: int) -> dict:
        """Complete a started session, timing it from the due time until now."""
        job = await self.get_job(job_id)
        if job.status != JobStatus.STARTED:
            return {"status": "success"}
        if await self.relations.get_active(job.id) is None:
            raise NotFoundError("Translator relation", job.id)

        now = local_now()
        job.end_at = now
        job.status = JobStatus.COMPLETED
        job.session_time = session_interval(job.due, now)
        await self.session.flush()
        await self._session_ended(job, completed_by=actor_id)
        return {"status": "success"}

    async def customer_not_call(self, job_id: int) -> dict:
        job = await self.get_job(job_id)
        relation = await self.relations.get_active(job.id)
        if relation is None:
            raise NotFoundError("Translator relation", job.id)

        now = local_now()
        job.end_at = now
        job.status = JobStatus.NOT_CARRIED_OUT_CUSTOMER
        job.session_time = session_interval(job.due, now)
        await self.relations.complete(relation, now, relation.user_id)
        return {"status": "success"}

    async def reopen(self, job_id: int, actor_id: int) -> dict:
        """Put a booking back on the market.

        A timed-out booking is cloned into a new pending record; any other
        booking is reset in place. Every uncancelled relation of the original
        is cancelled and a cancelled placeholder relation records who reopened it.
        """
        job = await self.get_job(job_id)
        now = local_now()
        expires = will_expire_at(job.due, now)

        if job.status != JobStatus.TIMEDOUT:
            job.status = JobStatus.PENDING
            job.created_at = now
            job.will_expire_at = expires
            target = job
        else:
            target = await self.jobs.clone(
                job,
                status=JobStatus.PENDING,
                created_at=now,
                will_expire_at=expires,
                cust_16_hour_email=False,
                cust_48_hour_email=False,
                admin_comments=f"This booking is a reopening of booking #{job.id}",
            )

        cancelled = await self.relations.cancel_all_uncancelled(job.id, now)
        await self.relations.append(actor_id, job.id, cancel_at=now)
        await self.session.flush()
        logger.info(
            "Job %s reopened as %s by user %s (%d relations cancelled)",
            job.id,
            target.id,
            actor_id,
            cancelled,
        )

        await self.notifier.notify_suitable_translators(target, await self.job_to_data(target))
        return {"new_job_id": target.id, "result": [messages.REOPENED]}

    # ------------------------------------------------------------------
    # Admin tools
    # ------------------------------------------------------------------

    async def distance_feed(self, data: DistanceFeedRequest) -> None:
        """Record travel distance/time and the admin review fields of a booking."""
        flagged = flag_is_set(data.flagged)
        if flagged and not (data.admincomment or "").strip():
            raise ValidationError("Please, add comment", details={"field": "admincomment"})

        job = await self.get_job(data.jobid)
        if data.distance or data.time:
            await self.distances.upsert(job.id, data.distance or "", data.time or "")

        if data.admincomment is not None:
            job.admin_comments = data.admincomment
        if data.session_time:
            job.session_time = data.session_time
        job.flagged = YES if flagged else NO
        job.manually_handled = YES if flag_is_set(data.manually_handled) else NO
        job.by_admin = YES if flag_is_set(data.by_admin) else NO
        await self.session.flush()

    async def resend_notifications(self, job_id: int) -> dict:
        job = await self.get_job(job_id)
        if not self.notifier.push.configured:
            raise DownstreamError("push", "gateway is not configured")
        notified = await self.notifier.notify_suitable_translators(job, await self.job_to_data(job))
        return {"success": "Push sent", "notified": notified}

    async def resend_sms_notifications(self, job_id: int) -> dict:
        job = await self.get_job(job_id)
        if not self.notifier.sms.configured:
            raise DownstreamError("sms", "gateway is not configured")
        data = await self.job_to_data(job)
        translators = await self.notifier.send_sms_to_translators(job)
        return {"success": "SMS sent", "data": data, "translators": translators}

    async def ignore_job(self, job_id: int, kind: str) -> list[str]:
        job = await self.get_job(job_id)
        if kind == "expire":
            job.ignore_expired = True
        elif kind == "ignore":
            job.ignore = True
        else:
            raise ValidationError("Invalid type", details={"type": kind})
        await self.session.flush()
        return ["success", "Changes saved"]

    async def notify_expired(self, job_id: int) -> dict:
        """Tell the customer nobody accepted a pending booking and stamp ``expired_at``."""
        job = await self.get_job(job_id)
        if job.status != JobStatus.PENDING:
            raise ConflictError(f"Job {job.id} is already '{job.status}'")
        customer = await self.users.get(job.user_id)
        if customer is None:
            raise NotFoundError("Customer", job.user_id)
        await self.notifier.expired_notification(job, customer)
        job.expired_at = local_now()
        await self.session.flush()
        admin_logger.info("Expired notification sent", extra={"job": job.id})
        return {"status": "success"}

    # ------------------------------------------------------------------
    # Dashboards
    # ------------------------------------------------------------------

    async def get_job_detail(self, job_id: int, viewer: UserRow) -> dict:
        """A booking with its translator relations.

        Visible to admins, the booking customer, translators who hold or held it
        and, while it is pending, any translator.
        """
        job = await self.get_job(job_id)
        rows = await self.relations.list_for_job(job.id)
        if not (
            viewer.user_type in ADMIN_USER_TYPES
            or job.user_id == viewer.id
            or any(r.user_id == viewer.id for r in rows)
            or (viewer.user_type == UserType.TRANSLATOR and job.status == JobStatus.PENDING)
        ):
            raise AuthorizationError(f"Job {job.id} is not visible to this user")
        relations = []
        for relation in rows:
            user = await self.users.get(relation.user_id)
            item = RelationOut.model_validate(relation).model_dump()
            item["user"] = UserOut.model_validate(user).model_dump() if user else None
            relations.append(item)
        return job_out(
            job,
            language=await self.languages.name(job.from_language_id),
            translator_job_rel=relations,
        )

    async def get_users_jobs(self, user_id: int) -> dict:
        """Open bookings of a customer or translator, split into emergency and normal."""
        user = await self.users.get(user_id)
        if user is None:
            return {}
        if user.user_type == UserType.CUSTOMER:
            user_type = "customer"
            jobs = await self.jobs.list_for_customer(user.id, ACTIVE_STATUSES)
        elif user.user_type == UserType.TRANSLATOR:
            user_type = "translator"
            jobs = await self.jobs.list_for_translator(user.id, ACTIVE_STATUSES)
        else:
            user_type = ""
            jobs = []

        emergency = [job_out(j) for j in jobs if j.immediate == YES]
        normal = []
        for job in sorted((j for j in jobs if j.immediate != YES), key=lambda j: j.due):
            usercheck = await self.matching.check_particular_job(user.id, job)
            normal.append(job_out(job, usercheck=usercheck.value))
        return {
            "emergencyJobs": emergency,
            "normalJobs": normal,
            "currentUser": UserOut.model_validate(user).model_dump(),
            "userType": user_type,
        }

    async def get_users_jobs_history(self, user_id: int, page: int = 1) -> dict:
        """Finished bookings, newest first, one page at a time."""
        user = await self.users.get(user_id)
        page = max(page, 1)
        offset = (page - 1) * settings.page_size
        jobs: list[JobRow] = []
        total = 0
        user_type = ""
        if user is not None and user.user_type == UserType.CUSTOMER:
            user_type = "customer"
            total = await self.jobs.count_for_customer(user.id, HISTORIC_STATUSES)
            jobs = await self.jobs.list_for_customer(
                user.id, HISTORIC_STATUSES, newest_first=True, limit=settings.page_size, offset=offset
            )
        elif user is not None and user.user_type == UserType.TRANSLATOR:
            user_type = "translator"
            total = await self.jobs.count_for_translator(user.id, HISTORIC_STATUSES)
            jobs = await self.jobs.list_for_translator(
                user.id, HISTORIC_STATUSES, newest_first=True, limit=settings.page_size, offset=offset
            )

        items = [job_out(j) for j in jobs]
        return {
            "emergencyJobs": [],
            "normalJobs": items,
            "jobs": items,
            "cuser": UserOut.model_validate(user).model_dump() if user else None,
            "usertype": user_type,
            "numpages": (total + settings.page_size - 1) // settings.page_size,
            "pagenum": page,
        }

    async def get_potential_jobs(self, translator: UserRow) -> list[dict]:
        potential = await self.matching.get_potential_jobs(translator)
        return [
            job_out(
                p.job,
                specific_job=p.specific_job.value,
                check_particular_job=p.check_particular_job.value,
            )
            for p in potential
        ]
