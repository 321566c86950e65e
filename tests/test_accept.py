"""Accepting jobs, including two translators racing for the same booking."""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from dtbooking.db.base import Base
import dtbooking.db.models  # noqa: F401
from dtbooking.db.models.translator import TranslatorJobRelRow
from dtbooking.models.enums import JobStatus
from dtbooking.notifications import messages
from dtbooking.services.booking_service import BookingService
from dtbooking.services.business_time import local_now

from conftest import Factory, RecordingMailer, RecordingPushSender, RecordingSmsSender


@pytest.mark.asyncio
async def test_accept_assigns_job_and_mails_customer(factory, world, service, mailer):
    job = await factory.job(world["customer"], world["arabic"])

    result = await service.accept_job(job.id, world["translator"])

    assert result["status"] == "success"
    assert result["list"]["job"]["status"] == "assigned"
    assert job.status == JobStatus.ASSIGNED
    relation = await service.relations.get_active(job.id)
    assert relation.user_id == world["translator"].id
    assert mailer.to(world["customer"].email) == ["job-accepted"]


@pytest.mark.asyncio
async def test_accept_fails_when_already_assigned(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"])
    await service.accept_job(job.id, world["translator"])

    result = await service.accept_job(job.id, world["other_translator"])

    assert result == {"status": "fail", "message": messages.ALREADY_BOOKED}
    assert (await service.relations.get_active(job.id)).user_id == world["translator"].id


@pytest.mark.asyncio
async def test_accept_fails_on_overlapping_booking(factory, world, service):
    customer, translator = world["customer"], world["translator"]
    due = local_now().replace(second=0, microsecond=0) + timedelta(days=2)
    held = await factory.job(customer, world["arabic"], due=due, status=JobStatus.ASSIGNED)
    await factory.relation(translator, held)
    clash = await factory.job(customer, world["arabic"], due=due + timedelta(minutes=15))

    result = await service.accept_job_with_id(clash.id, translator)

    assert result["status"] == "fail"
    assert result["message"].startswith("Du har redan en bokning den tiden")
    assert clash.status == JobStatus.PENDING


@pytest.mark.asyncio
async def test_accept_with_id_pushes_customer(factory, world, service, push_sender):
    job = await factory.job(world["customer"], world["arabic"])

    result = await service.accept_job_with_id(job.id, world["translator"])

    assert result["status"] == "success"
    assert "Arabiska" in result["message"]
    assert push_sender.recipients() == [world["customer"].email]
    assert push_sender.sent[0]["data"]["notification_type"] == "job_accepted"


@pytest.mark.asyncio
async def test_accept_with_id_reports_other_translator(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"])
    await service.accept_job_with_id(job.id, world["other_translator"])

    result = await service.accept_job_with_id(job.id, world["translator"])

    assert result["status"] == "fail"
    assert "har redan accepterats av annan tolk" in result["message"]


@pytest.mark.asyncio
async def test_concurrent_accepts_assign_exactly_one_translator(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as setup:
        factory = Factory(setup)
        arabic = await factory.language("Arabiska")
        customer = await factory.customer()
        first = await factory.translator([arabic])
        second = await factory.translator([arabic])
        job = await factory.job(customer, arabic)

    async def attempt(translator):
        async with session_factory() as session:
            service = BookingService(
                session, RecordingMailer(), RecordingPushSender(), RecordingSmsSender()
            )
            result = await service.accept_job(job.id, translator)
            await session.commit()
            return result

    results = await asyncio.gather(attempt(first), attempt(second))

    assert sorted(r["status"] for r in results) == ["fail", "success"]
    async with session_factory() as check:
        relations = (
            await check.execute(select(TranslatorJobRelRow).where(TranslatorJobRelRow.job_id == job.id))
        ).scalars().all()
    assert len(relations) == 1
    await engine.dispose()
