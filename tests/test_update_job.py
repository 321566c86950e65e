"""Admin update: reassignment audit trail, change notifications and status changes."""

import logging
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.errors.exceptions import NotFoundError
from dtbooking.logging_config import ADMIN_LOGGER
from dtbooking.models.enums import JobStatus
from dtbooking.models.job import JobUpdate
from dtbooking.services.business_time import format_due, local_now


async def active_relations(session, job_id: int) -> int:
    stmt = select(func.count(TranslatorJobRelRow.id)).where(
        TranslatorJobRelRow.job_id == job_id,
        TranslatorJobRelRow.cancel_at.is_(None),
        TranslatorJobRelRow.completed_at.is_(None),
    )
    return (await session.execute(stmt)).scalar_one()


@pytest.mark.asyncio
async def test_reassignment_keeps_one_active_relation(db_session, factory, world, service, mailer):
    customer, first, second = world["customer"], world["translator"], world["other_translator"]
    third = await factory.translator([world["arabic"]])
    job = await factory.job(customer, world["arabic"], status=JobStatus.ASSIGNED)
    await factory.relation(first, job)

    await service.update_job(job.id, JobUpdate(translator=second.id), world["admin"])
    assert await active_relations(db_session, job.id) == 1
    await service.update_job(job.id, JobUpdate(translator_email=third.email), world["admin"])
    assert await active_relations(db_session, job.id) == 1

    rows = await service.relations.list_for_job(job.id)
    assert [r.user_id for r in rows] == [first.id, second.id, third.id]
    assert rows[0].cancel_at is not None
    assert rows[1].cancel_at is not None
    assert rows[2].cancel_at is None

    assert "job-changed-translator-customer" in mailer.to(customer.email)
    assert "job-changed-translator-old-translator" in mailer.to(first.email)
    assert "job-changed-translator-new-translator" in mailer.to(third.email)


@pytest.mark.asyncio
async def test_same_translator_is_not_reassigned(factory, world, service, mailer):
    job = await factory.job(world["customer"], world["arabic"], status=JobStatus.ASSIGNED)
    await factory.relation(world["translator"], job)

    result = await service.update_job(job.id, JobUpdate(translator=world["translator"].id), world["admin"])

    assert result.changes == []
    assert len(await service.relations.list_for_job(job.id)) == 1
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_unknown_translator_email_raises(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"])
    with pytest.raises(NotFoundError):
        await service.update_job(job.id, JobUpdate(translator_email="nobody@example.se"), world["admin"])


@pytest.mark.asyncio
async def test_due_change_notifies_when_booking_is_in_future(factory, world, service, mailer):
    job = await factory.job(world["customer"], world["arabic"])
    old_due = format_due(job.due)
    new_due = format_due(job.due + timedelta(days=1))

    result = await service.update_job(job.id, JobUpdate(due=new_due), world["admin"])

    assert format_due(job.due) == new_due
    assert {"old_due": old_due, "new_due": new_due} in result.changes
    assert mailer.to(world["customer"].email) == ["job-changed-date"]
    assert mailer.sent[0]["data"]["old_time"] == old_due


@pytest.mark.asyncio
async def test_changes_to_past_booking_send_no_mail(factory, world, service, mailer):
    past = local_now().replace(microsecond=0) - timedelta(days=2)
    job = await factory.job(world["customer"], world["arabic"], due=past)
    somali = await factory.language("Somaliska")

    result = await service.update_job(
        job.id,
        JobUpdate(due=format_due(past - timedelta(hours=1)), from_language_id=somali.id),
        world["admin"],
    )

    assert len(result.changes) == 2
    assert job.from_language_id == somali.id
    assert mailer.sent == []


@pytest.mark.asyncio
async def test_language_change_mails_old_language(factory, world, service, mailer):
    job = await factory.job(world["customer"], world["arabic"])
    somali = await factory.language("Somaliska")

    await service.update_job(job.id, JobUpdate(from_language_id=somali.id), world["admin"])

    assert mailer.sent[0]["template"] == "job-changed-lang"
    assert mailer.sent[0]["data"]["old_lang"] == "Arabiska"


@pytest.mark.asyncio
async def test_completed_to_timedout_without_comment_is_reported_unchanged(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"], status=JobStatus.COMPLETED)

    result = await service.update_job(job.id, JobUpdate(status="timedout"), world["admin"])

    assert job.status == JobStatus.COMPLETED
    assert result.status_change == "unchanged"
    assert result.reason == "admin comment required"


@pytest.mark.asyncio
async def test_assigning_pending_job_sends_acceptance(factory, world, service, mailer, push_sender):
    customer, translator = world["customer"], world["translator"]
    job = await factory.job(customer, world["arabic"])

    result = await service.update_job(
        job.id,
        JobUpdate(translator=translator.id, status="assigned", admin_comments="Tilldelad"),
        world["admin"],
    )

    assert result.status_change == "applied"
    assert job.status == JobStatus.ASSIGNED
    assert job.admin_comments == "Tilldelad"
    assert "job-accepted" in mailer.to(customer.email)
    assert "job-changed-translator-new-translator" in mailer.to(translator.email)
    assert set(push_sender.recipients()) == {customer.email, translator.email}


@pytest.mark.asyncio
async def test_started_to_completed_closes_relation(db_session, factory, world, service, mailer):
    customer, translator = world["customer"], world["translator"]
    job = await factory.job(customer, world["arabic"], status=JobStatus.STARTED)
    relation = await factory.relation(translator, job)

    result = await service.update_job(
        job.id,
        JobUpdate.model_validate({"status": "completed", "admin_comments": "Klar", "sesion_time": "01:30:00"}),
        world["admin"],
    )

    assert result.status_change == "applied"
    assert job.status == JobStatus.COMPLETED
    assert job.session_time == "01:30:00"
    await db_session.refresh(relation)
    assert relation.completed_at is not None
    assert relation.completed_by == world["admin"].id
    ended = [m for m in mailer.sent if m["template"] == "session-ended"]
    assert {m["data"]["for_text"] for m in ended} == {"faktura", "lön"}
    assert ended[0]["data"]["session_time"] == "01 tim 30 min"


@pytest.mark.asyncio
async def test_reopen_through_update_resets_flags(factory, world, service, mailer):
    job = await factory.job(world["customer"], world["arabic"], status=JobStatus.TIMEDOUT, emailsent=True)

    await service.update_job(job.id, JobUpdate(status="pending"), world["admin"])

    assert job.status == JobStatus.PENDING
    assert job.emailsent is False
    assert "job-change-status-to-customer" in mailer.to(world["customer"].email)


@pytest.mark.asyncio
async def test_update_writes_admin_audit_entry(factory, world, service, caplog):
    job = await factory.job(world["customer"], world["arabic"])

    with caplog.at_level(logging.INFO, logger=ADMIN_LOGGER):
        await service.update_job(job.id, JobUpdate(reference="REF-1"), world["admin"])

    records = [r for r in caplog.records if r.name == ADMIN_LOGGER]
    assert len(records) == 1
    assert f"booking #{job.id}" in records[0].getMessage()
    assert job.reference == "REF-1"
