from datetime import datetime, timedelta

import pytest

from tolkapp.domain.jobs import messages
from tolkapp.domain.jobs.helpers import (
    derive_certified,
    derive_gender,
    get_job_for,
    job_for_codes,
    job_type_for_consumer,
    translator_levels_for,
    translator_type_for_job,
    will_expire_at,
)
from tolkapp.shared import datetime_helper

CREATED = datetime(2026, 10, 19, 10, 0)


@pytest.mark.parametrize(
    "lead, expected",
    [
        (timedelta(minutes=30), CREATED + timedelta(minutes=30)),
        (timedelta(minutes=90), CREATED + timedelta(minutes=90)),
        (timedelta(minutes=91), CREATED + timedelta(minutes=90)),
        (timedelta(hours=24, minutes=1), CREATED + timedelta(hours=16)),
        (timedelta(hours=2), CREATED + timedelta(minutes=90)),
        (timedelta(hours=24), CREATED + timedelta(minutes=90)),
        (timedelta(hours=25), CREATED + timedelta(hours=16)),
        (timedelta(hours=72), CREATED + timedelta(hours=16)),
        (timedelta(hours=72, minutes=1), CREATED + timedelta(hours=24, minutes=1)),
        (timedelta(days=5), CREATED + timedelta(days=5) - timedelta(hours=48)),
    ],
)
def test_will_expire_at_tiers(lead, expected):
    assert will_expire_at(CREATED + lead, CREATED) == expected


@pytest.mark.parametrize(
    "job_for, expected",
    [
        (["normal", "certified"], "both"),
        (["normal", "certified_in_law"], "n_law"),
        (["normal", "certified_in_helth"], "n_health"),
        (["certified"], "yes"),
        (["certified_in_law"], "law"),
        (["certified_in_helth"], "health"),
        (["normal"], "normal"),
        ([], "normal"),
        (["male", "certified"], "yes"),
    ],
)
def test_derive_certified(job_for, expected):
    assert derive_certified(job_for) == expected


def test_derive_gender():
    assert derive_gender(["female", "certified"]) == "female"
    assert derive_gender(["male"]) == "male"
    assert derive_gender(["normal"]) is None


def test_job_for_encodings_differ_between_push_and_display():
    assert job_for_codes("male", "both") == ["Man", "normal", "certified"]
    assert job_for_codes(None, "yes") == ["certified"]
    assert get_job_for("female", "both") == ["Kvinna", "Godkänd tolk", "Auktoriserad"]
    assert get_job_for(None, "n_law") == ["Rätttstolk"]
    assert get_job_for(None, "n_health") == ["Sjukvårdstolk"]
    assert get_job_for(None, "health") == ["health"]


def test_job_type_mappings():
    assert job_type_for_consumer("rwsconsumer") == "rws"
    assert job_type_for_consumer("ngo") == "unpaid"
    assert job_type_for_consumer("paid") == "paid"
    assert job_type_for_consumer(None) == "unknown"

    assert translator_type_for_job("paid") == "professional"
    assert translator_type_for_job("rws") == "rwstranslator"
    assert translator_type_for_job("unpaid") == "volunteer"


def test_translator_levels_for_certification_tiers():
    assert "Certified with specialisation in law" in translator_levels_for("yes")
    assert translator_levels_for("n_law") == ("Certified with specialisation in law",)
    assert translator_levels_for("health") == ("Certified with specialisation in health care",)
    assert "Certified" not in translator_levels_for("normal")


def test_night_time_wraps_midnight():
    assert datetime_helper.is_night_time(datetime(2026, 10, 19, 23, 30), 22, 7)
    assert datetime_helper.is_night_time(datetime(2026, 10, 19, 3, 0), 22, 7)
    assert not datetime_helper.is_night_time(datetime(2026, 10, 19, 7, 0), 22, 7)


def test_next_business_time_rolls_over_to_next_morning():
    assert datetime_helper.next_business_time(datetime(2026, 10, 19, 23, 0), 8) == datetime(2026, 10, 20, 8, 0)
    assert datetime_helper.next_business_time(datetime(2026, 10, 19, 5, 0), 8) == datetime(2026, 10, 19, 8, 0)


def test_session_time_formatting():
    start = datetime(2026, 10, 19, 10, 0)
    assert datetime_helper.format_session_time(start, start + timedelta(hours=26, minutes=5)) == "26:05:00"
    assert datetime_helper.humanize_session_time("01:30:00") == "01 tim 30 min"


def test_acceptance_failed_message_keeps_wording():
    due = datetime(2026, 10, 22, 14, 30)
    assert (
        messages.acceptance_failed(messages.ALREADY_ACCEPTED_BY_OTHER, 60, due)
        == "Denna tolkning har redan accepterats av annan tolk. 60min 2026-10-22 14:30:00. "
        "Du har inte fått denna tolkning"
    )


@pytest.mark.parametrize("certified", ["both", "yes", "law", "n_law", "health", "n_health", "normal", None])
def test_every_certification_tier_has_translator_levels(certified):
    assert translator_levels_for(certified)


@pytest.mark.parametrize("minutes, expected", [(45, "45min"), (60, "1h"), (90, "01h 30min"), (120, "02h 00min")])
def test_duration_in_hours_and_minutes(minutes, expected):
    assert datetime_helper.convert_to_hours_mins(minutes) == expected
