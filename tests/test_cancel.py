"""Customer withdrawals and translator hand-backs."""

from datetime import timedelta

import pytest

from dtbooking.errors.exceptions import AuthorizationError, ConflictError
from dtbooking.models.enums import JobStatus
from dtbooking.notifications import messages
from dtbooking.services.business_time import local_now


def due_in(hours: float):
    return local_now().replace(microsecond=0) + timedelta(hours=hours)


@pytest.mark.asyncio
async def test_customer_withdraws_early(factory, world, service, push_sender):
    customer, translator = world["customer"], world["translator"]
    job = await factory.job(customer, world["arabic"], due=due_in(72), status=JobStatus.ASSIGNED)
    await factory.relation(translator, job)

    result = await service.cancel_job(job.id, customer)

    assert result == {"status": "success", "jobstatus": "success"}
    assert job.status == JobStatus.WITHDRAW_BEFORE_24
    assert job.withdraw_at is not None
    assert push_sender.recipients() == [translator.email]
    assert push_sender.sent[0]["data"]["notification_type"] == "job_cancelled"


@pytest.mark.asyncio
async def test_customer_withdraws_late(factory, world, service, push_sender):
    job = await factory.job(world["customer"], world["arabic"], due=due_in(5))

    await service.cancel_job(job.id, world["customer"])

    assert job.status == JobStatus.WITHDRAW_AFTER_24
    assert push_sender.sent == []


@pytest.mark.asyncio
async def test_customer_cannot_withdraw_someone_elses_booking(factory, world, service):
    stranger = await factory.customer()
    job = await factory.job(world["customer"], world["arabic"])
    with pytest.raises(AuthorizationError):
        await service.cancel_job(job.id, stranger)


@pytest.mark.asyncio
async def test_cancelling_finished_booking_conflicts(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"], status=JobStatus.COMPLETED)
    with pytest.raises(ConflictError):
        await service.cancel_job(job.id, world["customer"])


@pytest.mark.asyncio
async def test_translator_late_cancellation_is_refused(factory, world, service, mailer, push_sender):
    translator = world["translator"]
    job = await factory.job(world["customer"], world["arabic"], due=due_in(20), status=JobStatus.ASSIGNED)
    relation = await factory.relation(translator, job)

    result = await service.cancel_job(job.id, translator)

    assert result == {"status": "fail", "message": messages.late_cancellation()}
    assert "+46 73 75 86 865" in result["message"]
    assert job.status == JobStatus.ASSIGNED
    assert relation.cancel_at is None
    assert mailer.sent == [] and push_sender.sent == []


@pytest.mark.asyncio
async def test_translator_hand_back_reopens_and_keeps_history(factory, world, service, push_sender):
    customer, translator, other = world["customer"], world["translator"], world["other_translator"]
    job = await factory.job(customer, world["arabic"], due=due_in(96), status=JobStatus.ASSIGNED)
    relation = await factory.relation(translator, job)

    result = await service.cancel_job(job.id, translator)

    assert result == {"status": "success"}
    assert job.status == JobStatus.PENDING
    assert relation.cancel_at is not None
    assert len(await service.relations.list_for_job(job.id)) == 1
    recipients = push_sender.recipients()
    assert customer.email in recipients
    assert other.email in recipients
    assert translator.email not in recipients


@pytest.mark.asyncio
async def test_only_holding_translator_can_hand_back(factory, world, service):
    job = await factory.job(world["customer"], world["arabic"], due=due_in(96), status=JobStatus.ASSIGNED)
    await factory.relation(world["translator"], job)

    with pytest.raises(AuthorizationError):
        await service.cancel_job(job.id, world["other_translator"])


@pytest.mark.asyncio
@pytest.mark.parametrize("hours_ahead,expected", [(24, "fail"), (24.5, "success")])
async def test_hand_back_deadline_counts_fractional_hours(factory, world, service, hours_ahead, expected):
    translator = world["translator"]
    job = await factory.job(
        world["customer"], world["arabic"], due=due_in(hours_ahead), status=JobStatus.ASSIGNED
    )
    await factory.relation(translator, job)

    result = await service.cancel_job(job.id, translator)

    assert result["status"] == expected
