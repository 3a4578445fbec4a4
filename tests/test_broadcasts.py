from datetime import timedelta

import pytest
from conftest import NIGHT, NOW

from tolkapp.database import SessionLocal
from tolkapp.domain.jobs import messages
from tolkapp.domain.jobs.service import BookingService
from tolkapp.events import EventBus
from tolkapp.services.status_automation import expire_pending_jobs


def test_broadcast_daytime_single_push(service, make_job, make_translator, language, sent):
    make_translator("a@example.com")
    make_translator("b@example.com", not_get_nighttime="yes")
    job = make_job()

    result = service.notify_suitable_translators(job.id)

    assert result == {"status": "success", "recipients": 2}
    assert len(sent) == 1
    push = sent[0]
    assert push.send_after is None
    assert push.contents == messages.new_booking_push(language.language, job.duration, job.due, False)
    assert push.data["notification_type"] == "suitable_job"
    assert push.data["language"] == language.language
    assert push.data["job_for"] == ["certified"]


def test_broadcast_at_night_delays_opted_out_translators(make_service, make_job, make_translator, sent):
    make_translator("owl@example.com")
    make_translator("sleeper@example.com", not_get_nighttime="yes")
    job = make_job()

    make_service(NIGHT).notify_suitable_translators(job.id)

    assert [(e.recipients, e.send_after is None) for e in sent] == [
        (["owl@example.com"], True),
        (["sleeper@example.com"], False),
    ]
    assert sent[1].send_after.startswith("2026-10-20T08:00:00")


def test_sms_broadcast_uses_on_site_wording(service, make_job, make_translator, settings, sent):
    make_translator("a@example.com", mobile="+46703333333")
    make_translator("b@example.com", mobile="+46704444444", not_get_nighttime="yes")
    job = make_job(customer_physical_type="yes", customer_phone_type="no", town="Uppsala")

    assert service.send_sms_notification_to_translator(job.id) == 2

    assert [e.recipients for e in sent] == [["+46703333333"], ["+46704444444"]]
    assert all(e.channel == "sms" and e.sender == settings.sms_number for e in sent)
    assert "Platstolkning i Uppsala" in sent[0].body
    assert job.due.strftime("%d.%m.%Y") in sent[0].body


def test_sms_broadcast_phone_wording(service, make_job, translator, sent):
    job = make_job()

    assert service.send_sms_notification_to_translator(job.id) == 1
    assert sent[0].body.startswith("Bokningsbekräftelse: Telefontolkning")
    assert ", 1h. " in sent[0].body


@pytest.mark.parametrize("error", [KeyError("city"), TypeError("unsupported format"), AttributeError("due")])
def test_sms_broadcast_returns_zero_when_template_fails(service, make_job, translator, monkeypatch, sent, error):
    job = make_job()

    def broken(job, city):
        raise error

    monkeypatch.setattr(messages, "render_sms", broken)

    assert service.send_sms_notification_to_translator(job.id) == 0
    assert sent == []


def test_expiry_sweep_times_out_overdue_jobs(db, make_job, customer, sent, language):
    overdue = make_job(due=NOW + timedelta(hours=2), will_expire_at=NOW - timedelta(minutes=1))
    fresh = make_job(due=NOW + timedelta(days=5))

    summary = expire_pending_jobs(db, dispatch=sent.extend, clock=lambda: NOW)

    assert summary == {"pending_to_timedout": 1, "total_updated": 1}
    db.refresh(overdue)
    db.refresh(fresh)
    assert overdue.status == "timedout"
    assert fresh.status == "pending"

    assert len(sent) == 1
    assert sent[0].recipients == [customer.email]
    assert sent[0].contents == messages.expired_push(language.language, overdue.duration, overdue.due)
    assert sent[0].data == {"notification_type": "job_expired"}


def test_sms_duration_is_written_in_hours_and_minutes(service, make_job, translator, sent):
    job = make_job(duration=90)

    service.send_sms_notification_to_translator(job.id)

    assert f"kl {job.due.strftime('%H:%M')}, 01h 30min. " in sent[0].body


def test_expiry_sweep_leaves_job_accepted_after_listing(db, make_job, translator, settings, sent):
    job = make_job(due=NOW + timedelta(hours=2), will_expire_at=NOW - timedelta(minutes=1))

    sweep_session = SessionLocal()
    try:
        sweeper = BookingService(sweep_session, settings=settings, dispatch=sent.extend, clock=lambda: NOW, bus=EventBus())
        listed = sweeper.repo.get_expired_pending_jobs(sweep_session, NOW)
        assert [j.id for j in listed] == [job.id]

        accepter = BookingService(db, settings=settings, dispatch=lambda envs: None, clock=lambda: NOW, bus=EventBus())
        assert accepter.accept_job({"job_id": job.id}, translator)["status"] == "success"

        sweeper.repo.get_expired_pending_jobs = lambda session, now: listed
        assert sweeper.expire_overdue_jobs() == {"expired": 0}
    finally:
        sweep_session.close()

    db.refresh(job)
    assert job.status == "assigned"
    assert sent == []
