"""Notification fan-out for booking events.

The dispatcher decides who is told what and over which channel; the injected
``Mailer``, ``PushSender`` and ``SmsSender`` do the delivery. Delivery failures
are logged here and never propagate into the lifecycle operation that
triggered them.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from dtbooking.config import settings
from dtbooking.db.models.job import JobRow
from dtbooking.db.models.user import UserRow
from dtbooking.logging_config import PUSH_LOGGER
from dtbooking.models.enums import YES, NotificationType
from dtbooking.notifications import messages
from dtbooking.notifications.base import Mailer, PushSender, SmsSender
from dtbooking.repositories.translator_repo import TranslatorRelationRepository
from dtbooking.repositories.user_repo import LanguageRepository, UserMetaRepository, UserRepository
from dtbooking.services.business_time import (
    convert_to_hours_mins,
    format_due,
    is_day_time,
    local_now,
    next_business_time_string,
)
from dtbooking.services.matching import MatchingEngine, is_physical_only

logger = logging.getLogger(__name__)
push_logger = logging.getLogger(PUSH_LOGGER)


def user_tags(users: list[UserRow]) -> list[dict[str, str]]:
    """Push audience as ``email = <address>`` tag predicates."""
    return [{"key": "email", "relation": "=", "value": user.email.lower()} for user in users]


def sound_profile(data: dict[str, Any]) -> tuple[str, str]:
    """Return ``(android_sound, ios_sound)`` for a push payload."""
    if data.get("notification_type") != NotificationType.SUITABLE_JOB:
        return "default", "default"
    sound = "emergency_booking" if data.get("immediate") == YES else "normal_booking"
    return sound, f"{sound}.mp3"


class NotificationDispatcher:
    def __init__(
        self,
        session: AsyncSession,
        mailer: Mailer,
        push: PushSender,
        sms: SmsSender,
    ):
        self.mailer = mailer
        self.push = push
        self.sms = sms
        self.users = UserRepository(session)
        self.meta = UserMetaRepository(session)
        self.languages = LanguageRepository(session)
        self.relations = TranslatorRelationRepository(session)
        self.matching = MatchingEngine(session)

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    async def is_need_to_send_push(self, user_id: int) -> bool:
        return await self.meta.get_value(user_id, "not_get_notification") != YES

    async def is_need_to_delay_push(self, user_id: int, now: datetime | None = None) -> bool:
        """Night-time pushes are delayed for users who opted out of them."""
        if is_day_time(now or local_now()):
            return False
        return await self.meta.get_value(user_id, "not_get_nighttime") == YES

    def build_push_fields(
        self,
        users: list[UserRow],
        job_id: int,
        data: dict[str, Any],
        msg_text: str,
        need_delay: bool,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        android_sound, ios_sound = sound_profile(data)
        fields: dict[str, Any] = {
            "tags": user_tags(users),
            "data": {**data, "job_id": job_id},
            "title": {"en": messages.PUSH_TITLE},
            "contents": {"en": msg_text},
            "ios_badgeType": "Increase",
            "ios_badgeCount": 1,
            "android_sound": android_sound,
            "ios_sound": ios_sound,
        }
        if need_delay:
            fields["send_after"] = next_business_time_string(now or local_now())
        return fields

    async def send_push_to_users(
        self,
        users: list[UserRow],
        job_id: int,
        data: dict[str, Any],
        msg_text: str,
        need_delay: bool,
    ) -> dict[str, Any] | None:
        if not users:
            return None
        fields = self.build_push_fields(users, job_id, data, msg_text, need_delay)
        push_logger.info(
            "Push send for job %s",
            job_id,
            extra={"recipients": [u.email for u in users], "delayed": need_delay},
        )
        response = await self.push.send(fields)
        if "error" in response:
            push_logger.warning("Push for job %s failed: %s", job_id, response["error"])
        else:
            push_logger.info("Push for job %s answered: %s", job_id, response)
        return response

    async def push_to_user(
        self, user: UserRow, job: JobRow, notification_type: str, msg_text: str
    ) -> None:
        """Push to one user honouring their opt-out and night-time preferences."""
        if not await self.is_need_to_send_push(user.id):
            return
        await self.send_push_to_users(
            [user],
            job.id,
            {"notification_type": notification_type},
            msg_text,
            await self.is_need_to_delay_push(user.id),
        )

    async def notify_suitable_translators(
        self, job: JobRow, data: dict[str, Any], exclude_user_id: int | None = None
    ) -> int:
        """Push a new or reopened booking to every translator who may take it.

        Returns:
            Number of translators notified.
        """
        immediate = job.immediate == YES
        now_recipients: list[UserRow] = []
        delayed_recipients: list[UserRow] = []
        for translator in await self.users.list_active_translators(exclude_user_id):
            if not await self.is_need_to_send_push(translator.id):
                continue
            if immediate and await self.meta.get_value(translator.id, "not_get_emergency") == YES:
                continue
            if not await self.matching.is_potential_job(translator, job.id):
                continue
            if await self.is_need_to_delay_push(translator.id):
                delayed_recipients.append(translator)
            else:
                now_recipients.append(translator)

        language = await self.languages.name(job.from_language_id)
        push_data = {
            **data,
            "language": language,
            "notification_type": NotificationType.SUITABLE_JOB.value,
        }
        msg_text = messages.suitable_job_push(language, job.duration, format_due(job.due), immediate)
        await self.send_push_to_users(now_recipients, job.id, push_data, msg_text, False)
        await self.send_push_to_users(delayed_recipients, job.id, push_data, msg_text, True)
        return len(now_recipients) + len(delayed_recipients)

    async def session_start_reminder(self, user: UserRow, job: JobRow) -> None:
        language = await self.languages.name(job.from_language_id)
        msg_text = messages.session_start_remind_push(
            language,
            format_due(job.due),
            job.duration,
            job.town,
            physical=job.customer_physical_type == YES,
        )
        push_logger.info("Session start reminder", extra={"job": job.id})
        await self.push_to_user(user, job, NotificationType.SESSION_START_REMIND, msg_text)

    async def expired_notification(self, job: JobRow, user: UserRow) -> None:
        language = await self.languages.name(job.from_language_id)
        await self.push_to_user(
            user,
            job,
            NotificationType.JOB_EXPIRED,
            messages.expired_push(language, job.duration, format_due(job.due)),
        )

    async def job_accepted_push(self, job: JobRow, customer: UserRow) -> None:
        language = await self.languages.name(job.from_language_id)
        await self.push_to_user(
            customer,
            job,
            NotificationType.JOB_ACCEPTED,
            messages.job_accepted_push(language, job.duration, format_due(job.due)),
        )

    async def job_cancelled_push(self, job: JobRow, recipient: UserRow, by_customer: bool) -> None:
        """Tell the other party that a booking was cancelled."""
        language = await self.languages.name(job.from_language_id)
        due = format_due(job.due)
        if by_customer:
            msg_text = messages.customer_cancelled_push(language, job.duration, due)
        else:
            msg_text = messages.translator_cancelled_push(language, job.duration, due)
        await self.push_to_user(recipient, job, NotificationType.JOB_CANCELLED, msg_text)

    # ------------------------------------------------------------------
    # SMS
    # ------------------------------------------------------------------

    async def sms_text(self, job: JobRow) -> str | None:
        """Pick the SMS template for the booking's phone/physical combination."""
        date = job.due.strftime("%d.%m.%Y")
        time = job.due.strftime("%H:%M")
        duration = convert_to_hours_mins(job.duration)
        if is_physical_only(job):
            town = job.town or await self.meta.get_value(job.user_id, "city") or ""
            return messages.physical_job_sms(date, time, town, duration, job.id)
        if job.customer_phone_type == YES:
            return messages.phone_job_sms(date, time, duration, job.id)
        return None

    async def send_sms_to_translators(self, job: JobRow) -> int:
        """Text every potential translator about ``job``.

        Returns:
            Number of potential translators.
        """
        translators = await self.matching.get_potential_translators(job)
        message = await self.sms_text(job)
        if message is None:
            logger.warning("Job %s has neither phone nor physical type, SMS skipped", job.id)
            return len(translators)
        logger.info("SMS for job %s: %s", job.id, message)
        for translator in translators:
            status = await self.sms.send(settings.sms_number, translator.mobile or "", message)
            logger.info("Send SMS to %s (%s), status: %s", translator.email, translator.mobile, status)
        return len(translators)

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    async def mail(
        self,
        email: str,
        name: str,
        subject: str,
        template: str,
        data: dict[str, Any],
    ) -> bool:
        try:
            return await self.mailer.send(email, name, subject, template, data)
        except Exception:
            logger.exception("Email '%s' to %s failed", template, email)
            return False

    async def customer_of(self, job: JobRow) -> tuple[UserRow | None, str]:
        """Return the customer and the address their booking mail goes to."""
        customer = await self.users.get(job.user_id)
        email = job.user_email or (customer.email if customer else "")
        return customer, email

    async def active_translator(self, job: JobRow) -> UserRow | None:
        relation = await self.relations.get_active(job.id)
        if relation is None:
            return None
        return await self.users.get(relation.user_id)

    async def mail_customer(self, job: JobRow, subject: str, template: str, **extra: Any) -> None:
        customer, email = await self.customer_of(job)
        if customer is None or not email:
            logger.warning("Job %s has no customer address, '%s' not sent", job.id, template)
            return
        await self.mail(email, customer.name, subject, template, {"user": customer, "job": job, **extra})

    async def mail_user(self, user: UserRow, job: JobRow, subject: str, template: str, **extra: Any) -> None:
        await self.mail(user.email, user.name, subject, template, {"user": user, "job": job, **extra})

    async def changed_translator(
        self, job: JobRow, old_translator: UserRow | None, new_translator: UserRow
    ) -> None:
        subject = messages.subject_translator_changed(job.id)
        await self.mail_customer(job, subject, "job-changed-translator-customer")
        if old_translator is not None:
            await self.mail_user(old_translator, job, subject, "job-changed-translator-old-translator")
        await self.mail_user(new_translator, job, subject, "job-changed-translator-new-translator")

    async def changed_date(self, job: JobRow, old_time: str) -> None:
        subject = messages.subject_booking_changed(job.id)
        await self.mail_customer(job, subject, "job-changed-date", old_time=old_time)
        translator = await self.active_translator(job)
        if translator is not None:
            await self.mail_user(translator, job, subject, "job-changed-date", old_time=old_time)

    async def changed_language(self, job: JobRow, old_lang: int) -> None:
        subject = messages.subject_booking_changed(job.id)
        old_language = await self.languages.name(old_lang)
        await self.mail_customer(job, subject, "job-changed-lang", old_lang=old_language)
        translator = await self.active_translator(job)
        if translator is not None:
            await self.mail_user(translator, job, subject, "job-changed-lang", old_lang=old_language)
