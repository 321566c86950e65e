"""Matching engine tests: level mapping, eligibility filters and targeting."""

from datetime import timedelta

import pytest

from dtbooking.errors.exceptions import ValidationError
from dtbooking.models.enums import Certified, JobStatus, TranslatorLevel, TranslatorType
from dtbooking.services.business_time import local_now
from dtbooking.services.matching import (
    Availability,
    JobTarget,
    MatchingEngine,
    job_type_for_translator,
    same_town,
    translator_levels,
    translator_type_for_job,
)


def test_both_certification_accepts_exactly_certified_levels():
    assert set(translator_levels(Certified.BOTH)) == {
        TranslatorLevel.CERTIFIED,
        TranslatorLevel.CERTIFIED_LAW,
        TranslatorLevel.CERTIFIED_HEALTH,
    }


@pytest.mark.parametrize(
    "certified,expected",
    [
        (Certified.YES, 3),
        (Certified.LAW, 1),
        (Certified.N_HEALTH, 1),
        (Certified.NORMAL, 2),
        (None, 5),
    ],
)
def test_translator_levels_size(certified, expected):
    assert len(translator_levels(certified)) == expected


def test_translator_type_mapping_round_trip():
    assert translator_type_for_job("paid") == TranslatorType.PROFESSIONAL
    assert translator_type_for_job("rws") == TranslatorType.RWS_TRANSLATOR
    assert translator_type_for_job("unpaid") == TranslatorType.VOLUNTEER
    assert job_type_for_translator(TranslatorType.RWS_TRANSLATOR) == "rws"
    assert job_type_for_translator(None) == "unpaid"


def test_unknown_job_type_is_rejected():
    with pytest.raises(ValidationError):
        translator_type_for_job("gratis")


def test_same_town_is_case_insensitive():
    assert same_town("Stockholm", " stockholm ")
    assert not same_town("Stockholm", "Göteborg")
    assert not same_town(None, "Stockholm")


@pytest.mark.asyncio
async def test_potential_translators_filters_blacklist_and_gender(db_session, factory, world):
    arabic, customer = world["arabic"], world["customer"]
    female = await factory.translator([arabic], gender="female")
    male = await factory.translator([arabic], gender="male")
    await factory.blacklist(customer, female)
    job = await factory.job(customer, arabic, gender="female")

    found = await MatchingEngine(db_session).get_potential_translators(job)
    ids = {t.id for t in found}
    assert female.id not in ids
    assert male.id not in ids

    open_job = await factory.job(customer, arabic)
    ids = {t.id for t in await MatchingEngine(db_session).get_potential_translators(open_job)}
    assert {world["translator"].id, male.id} <= ids
    assert female.id not in ids


@pytest.mark.asyncio
async def test_potential_jobs_respects_language_and_type(db_session, factory, world):
    customer, translator = world["customer"], world["translator"]
    somali = await factory.language("Somaliska")
    matching_job = await factory.job(customer, world["arabic"])
    await factory.job(customer, somali)
    await factory.job(customer, world["arabic"], job_type="unpaid")
    await factory.job(customer, world["arabic"], status=JobStatus.ASSIGNED)
    await factory.job(customer, world["arabic"], due=local_now() - timedelta(hours=1))

    potential = await MatchingEngine(db_session).get_potential_jobs(translator)
    assert [p.job.id for p in potential] == [matching_job.id]
    assert potential[0].specific_job == JobTarget.OPEN
    assert potential[0].check_particular_job == Availability.CAN_ACCEPT


@pytest.mark.asyncio
async def test_physical_only_jobs_require_same_town(db_session, factory, world):
    customer, translator = world["customer"], world["translator"]
    await factory.job(
        customer,
        world["arabic"],
        customer_phone_type="no",
        customer_physical_type="yes",
        town="Malmö",
    )
    local = await factory.job(
        customer,
        world["arabic"],
        customer_phone_type="no",
        customer_physical_type="yes",
        town="STOCKHOLM",
    )

    potential = await MatchingEngine(db_session).get_potential_jobs(translator)
    assert [p.job.id for p in potential] == [local.id]


@pytest.mark.asyncio
async def test_job_targeted_at_available_translator_is_hidden_from_others(db_session, factory, world):
    customer, translator, other = world["customer"], world["translator"], world["other_translator"]
    job = await factory.job(customer, world["arabic"], specific_translator_id=other.id)
    engine = MatchingEngine(db_session)

    assert [p.job.id for p in await engine.get_potential_jobs(translator)] == []
    mine = await engine.get_potential_jobs(other)
    assert mine[0].job.id == job.id
    assert mine[0].specific_job == JobTarget.SPECIFIC_JOB


@pytest.mark.asyncio
async def test_overlapping_booking_marks_translator_as_booked(db_session, factory, world):
    customer, translator = world["customer"], world["translator"]
    due = local_now().replace(second=0, microsecond=0) + timedelta(days=2)
    held = await factory.job(customer, world["arabic"], due=due, status=JobStatus.ASSIGNED)
    await factory.relation(translator, held)
    clash = await factory.job(customer, world["arabic"], due=due + timedelta(minutes=30))
    later = await factory.job(customer, world["arabic"], due=due + timedelta(hours=2))
    engine = MatchingEngine(db_session)

    assert await engine.is_translator_already_booked(translator.id, clash)
    assert not await engine.is_translator_already_booked(translator.id, later)
    assert await engine.check_particular_job(translator.id, clash) == Availability.CANNOT_ACCEPT
