"""Notification fan-out and the push/SMS gateway clients."""

from datetime import datetime

import httpx
import pytest

from dtbooking.models.enums import NotificationType
from dtbooking.notifications.dispatcher import NotificationDispatcher, sound_profile
from dtbooking.notifications.mailer import render_email
from dtbooking.notifications.push import OneSignalPushSender
from dtbooking.notifications.sms import HttpSmsSender


@pytest.fixture
def dispatcher(db_session, mailer, push_sender, sms_sender):
    return NotificationDispatcher(db_session, mailer, push_sender, sms_sender)


@pytest.fixture
def mock_http(monkeypatch):
    """Route every ``httpx.AsyncClient`` through a recording mock transport."""
    requests: list[httpx.Request] = []
    responses: list[httpx.Response] = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return responses.pop(0) if responses else httpx.Response(200, json={"id": "abc"})

    def client(*args, **kwargs):
        return real_client(*args, transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client)
    return requests, responses


def test_sound_profile():
    suitable = NotificationType.SUITABLE_JOB.value
    assert sound_profile({"notification_type": suitable, "immediate": "yes"}) == (
        "emergency_booking",
        "emergency_booking.mp3",
    )
    assert sound_profile({"notification_type": suitable, "immediate": "no"}) == (
        "normal_booking",
        "normal_booking.mp3",
    )
    assert sound_profile({"notification_type": "job_expired"}) == ("default", "default")


@pytest.mark.asyncio
async def test_build_push_fields(world, dispatcher):
    translator = world["translator"]
    translator.email = "Tolk.One@Example.se"

    fields = dispatcher.build_push_fields(
        [translator], 17, {"notification_type": "job_accepted"}, "Hej", need_delay=False
    )

    assert fields["tags"] == [{"key": "email", "relation": "=", "value": "tolk.one@example.se"}]
    assert fields["data"] == {"notification_type": "job_accepted", "job_id": 17}
    assert fields["contents"] == {"en": "Hej"}
    assert fields["android_sound"] == "default"
    assert "send_after" not in fields


@pytest.mark.asyncio
async def test_delayed_push_is_sent_after_business_day_start(world, dispatcher):
    night = datetime(2026, 3, 10, 23, 30)

    fields = dispatcher.build_push_fields(
        [world["translator"]], 1, {}, "Hej", need_delay=True, now=night
    )

    assert fields["send_after"].startswith("2026-03-11 08:00:00 GMT+")


@pytest.mark.asyncio
async def test_is_need_to_delay_push(factory, world, dispatcher):
    night = datetime(2026, 3, 10, 2, 0)
    noon = datetime(2026, 3, 10, 12, 0)
    sleeper = await factory.translator([world["arabic"]], not_get_nighttime="yes")

    assert await dispatcher.is_need_to_delay_push(sleeper.id, night) is True
    assert await dispatcher.is_need_to_delay_push(sleeper.id, noon) is False
    assert await dispatcher.is_need_to_delay_push(world["translator"].id, night) is False


@pytest.mark.asyncio
async def test_push_to_user_respects_opt_out(factory, world, dispatcher, push_sender):
    muted = await factory.customer(not_get_notification="yes")
    job = await factory.job(muted, world["arabic"])

    await dispatcher.job_accepted_push(job, muted)

    assert push_sender.sent == []


@pytest.mark.asyncio
async def test_notify_suitable_translators_skips_emergency_opt_out(factory, world, dispatcher, push_sender):
    await factory.translator([world["arabic"]], not_get_emergency="yes")
    job = await factory.job(world["customer"], world["arabic"], immediate="yes")

    count = await dispatcher.notify_suitable_translators(job, {"immediate": "yes"})

    assert count == 2
    assert sorted(push_sender.recipients()) == sorted(
        [world["translator"].email, world["other_translator"].email]
    )
    assert push_sender.sent[0]["data"]["language"] == "Arabiska"
    assert push_sender.sent[0]["contents"]["en"].startswith("Ny akutbokning för Arabiskatolk")


@pytest.mark.asyncio
async def test_expired_and_reminder_pushes(factory, world, dispatcher, push_sender):
    customer, translator = world["customer"], world["translator"]
    job = await factory.job(customer, world["arabic"], customer_phone_type="no",
                            customer_physical_type="yes", town="Malmö")

    await dispatcher.expired_notification(job, customer)
    await dispatcher.session_start_reminder(translator, job)

    expired, reminder = push_sender.sent
    assert expired["data"]["notification_type"] == "job_expired"
    assert expired["contents"]["en"].startswith("Tyvärr har ingen tolk accepterat er bokning: (Arabiska")
    assert reminder["data"]["notification_type"] == "session_start_remind"
    assert "på plats i Malmö" in reminder["contents"]["en"]


@pytest.mark.asyncio
async def test_sms_text_per_booking_kind(factory, world, dispatcher):
    customer = world["customer"]
    physical = await factory.job(customer, world["arabic"], customer_phone_type="no",
                                 customer_physical_type="yes", town="Uppsala")
    phone = await factory.job(customer, world["arabic"])
    neither = await factory.job(customer, world["arabic"], customer_phone_type="no")

    assert "platstolkuppdrag i Uppsala" in await dispatcher.sms_text(physical)
    assert "telefontolkuppdrag" in await dispatcher.sms_text(phone)
    assert await dispatcher.sms_text(neither) is None


@pytest.mark.asyncio
async def test_send_sms_to_translators(world, factory, dispatcher, sms_sender):
    job = await factory.job(world["customer"], world["arabic"])

    count = await dispatcher.send_sms_to_translators(job)

    assert count == 2
    assert {to for _, to, _ in sms_sender.sent} == {
        world["translator"].mobile,
        world["other_translator"].mobile,
    }
    assert f"Uppdrag #{job.id}" in sms_sender.sent[0][2]


@pytest.mark.asyncio
async def test_mail_failure_is_logged_not_raised(world, factory, db_session, push_sender, sms_sender):
    class BrokenMailer:
        async def send(self, *args):
            raise ConnectionRefusedError("smtp down")

    dispatcher = NotificationDispatcher(db_session, BrokenMailer(), push_sender, sms_sender)
    job = await factory.job(world["customer"], world["arabic"])

    assert await dispatcher.mail("a@example.se", "A", "Ämne", "job-created", {"job": job}) is False


def test_render_session_ended():
    body = render_email(
        "session-ended",
        {
            "user": {"name": "Anna"},
            "job": {"id": 42, "due": "2026-03-10 10:00:00"},
            "session_time": "01 tim 30 min",
            "for_text": "faktura",
        },
    )
    assert "Hej Anna" in body
    assert "bokning #42" in body
    assert "01 tim 30 min" in body
    assert "faktura" in body


@pytest.mark.asyncio
async def test_onesignal_sender_posts_notification(mock_http):
    requests, _ = mock_http
    sender = OneSignalPushSender(api_url="https://push.test/api/v1", app_id="app", api_key="key")

    result = await sender.send({"tags": [], "contents": {"en": "Hej"}})

    assert result == {"id": "abc"}
    assert str(requests[0].url) == "https://push.test/api/v1/notifications"
    assert requests[0].headers["Authorization"] == "Basic key"
    assert b'"app_id":"app"' in requests[0].content.replace(b" ", b"")


@pytest.mark.asyncio
async def test_onesignal_sender_reports_http_error(mock_http):
    _, responses = mock_http
    responses.append(httpx.Response(400, text="bad app id"))
    sender = OneSignalPushSender(api_url="https://push.test", app_id="app", api_key="key")

    result = await sender.send({"tags": []})

    assert result["error"] == "HTTP 400"
    assert result["body"] == "bad app id"


@pytest.mark.asyncio
async def test_sms_sender(mock_http):
    requests, responses = mock_http
    sender = HttpSmsSender(api_url="https://sms.test", account_sid="AC1", auth_token="tok")

    assert await sender.send("+46700000000", "+46701111111", "Hej") is True
    assert str(requests[0].url) == "https://sms.test/Accounts/AC1/Messages.json"
    assert b"Body=Hej" in requests[0].content

    responses.append(httpx.Response(500))
    assert await sender.send("+46700000000", "+46701111111", "Hej") is False
    assert await sender.send("+46700000000", "", "Hej") is False
    assert len(requests) == 2
