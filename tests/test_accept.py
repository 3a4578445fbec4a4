import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from conftest import NOW

from tolkapp.database import SessionLocal
from tolkapp.domain.jobs import messages
from tolkapp.domain.jobs.service import BookingService
from tolkapp.events import EventBus
from tolkapp.models import Job, TranslatorAssignment, User


def test_customer_cannot_accept(service, make_job, customer):
    result = service.accept_job({"job_id": make_job().id}, customer)
    assert result["error_type"] == "authorization"


def test_accept_assigns_and_notifies_requester(service, make_job, translator, customer, db, sent):
    job = make_job()

    result = service.accept_job({"job_id": job.id}, translator)

    assert result["status"] == "success"
    assert result["job"]["status"] == "assigned"
    assert result["jobs"] == []

    db.refresh(job)
    assert job.status == "assigned"
    assignment = db.query(TranslatorAssignment).filter_by(job_id=job.id).one()
    assert assignment.user_id == translator.id
    assert assignment.created_at == NOW

    assert [(e.channel, e.recipients) for e in sent] == [
        ("email", [customer.email]),
        ("push", [customer.email]),
    ]
    assert sent[0].template == "job-accepted"
    assert sent[0].payload["translator_name"] == translator.name
    assert sent[1].contents == messages.job_accepted_push()


def test_overlapping_booking_blocks_accept(service, make_job, translator, assign, db, sent):
    due = NOW + timedelta(days=3)
    assign(make_job(due=due), translator)
    clash = make_job(due=due + timedelta(minutes=30))

    result = service.accept_job({"job_id": clash.id}, translator)

    assert result["error_type"] == "conflict"
    assert result["message"] == messages.ALREADY_BOOKED_AT_TIME
    db.refresh(clash)
    assert clash.status == "pending"
    assert sent == []


def test_accept_of_taken_job_fails(service, make_job, make_translator, assign, db, sent):
    first = make_translator("first@example.com")
    second = make_translator("second@example.com")
    job = make_job()
    assign(job, first)

    result = service.accept_job({"job_id": job.id}, second)

    assert result["error_type"] == "conflict"
    assert result["message"] == messages.ALREADY_ACCEPTED_BY_OTHER
    assert db.query(TranslatorAssignment).filter_by(job_id=job.id).count() == 1
    assert sent == []


def test_accept_with_id_messages(service, make_job, make_translator, language):
    first = make_translator("first@example.com")
    second = make_translator("second@example.com")
    job = make_job()

    won = service.accept_job_with_id(job.id, first)
    assert won["status"] == "success"
    assert won["message"] == messages.accepted_with_id_message(language.language, job.duration, job.due)

    lost = service.accept_job_with_id(job.id, second)
    assert lost["status"] == "fail"
    assert lost["message"] == messages.acceptance_failed(messages.ALREADY_ACCEPTED_BY_OTHER, job.duration, job.due)


def test_stale_read_cannot_double_accept(db, make_job, make_translator, settings):
    first = make_translator("first@example.com")
    second = make_translator("second@example.com")
    job = make_job()

    other = SessionLocal()
    try:
        # Loaded while still pending, then someone else wins
        stale_job = other.get(Job, job.id)
        stale_translator = other.get(User, second.id)
        assert stale_job.status == "pending"

        winner = BookingService(db, settings=settings, dispatch=lambda envs: None, clock=lambda: NOW)
        assert winner.accept_job({"job_id": job.id}, first)["status"] == "success"

        loser = BookingService(other, settings=settings, dispatch=lambda envs: None, clock=lambda: NOW)
        result = loser.accept_job({"job_id": job.id}, stale_translator)
        assert result["message"] == messages.ALREADY_ACCEPTED_BY_OTHER
    finally:
        other.close()

    assert db.query(TranslatorAssignment).filter_by(job_id=job.id).count() == 1


def test_concurrent_accepts_produce_one_winner(db, make_job, make_translator, settings):
    translator_ids = [make_translator(f"tolk{i}@example.com").id for i in range(2)]
    job_id = make_job().id
    barrier = threading.Barrier(len(translator_ids))

    def attempt(translator_id):
        session = SessionLocal()
        try:
            translator = session.get(User, translator_id)
            service = BookingService(
                session, settings=settings, dispatch=lambda envs: None, clock=lambda: NOW, bus=EventBus()
            )
            barrier.wait(timeout=10)
            return service.accept_job({"job_id": job_id}, translator)["status"]
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(translator_ids)) as pool:
        outcomes = list(pool.map(attempt, translator_ids))

    assert sorted(outcomes) == ["fail", "success"]
    assert db.query(TranslatorAssignment).filter_by(job_id=job_id).count() == 1
    db.expire_all()
    assert db.get(Job, job_id).status == "assigned"
