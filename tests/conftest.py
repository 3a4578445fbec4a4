"""
Test configuration and fixtures.

Provides:
- File-backed SQLite database, rebuilt for every test
- A fixed booking clock and a recording notification dispatcher
- Factories for languages, customers, translators and jobs
"""
import os
import tempfile
from datetime import datetime, timedelta
from typing import Generator

import pytest

_TMP_DIR = tempfile.mkdtemp(prefix="tolkapp-tests-")

# Must be set before tolkapp.config is imported
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'tolkapp-test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["NOTIFICATION_QUEUE"] = "inline"

from sqlalchemy.orm import Session

from tolkapp import models  # noqa: F401
from tolkapp.config import BookingSettings
from tolkapp.database import Base, SessionLocal, engine
from tolkapp.domain.jobs.helpers import will_expire_at
from tolkapp.domain.jobs.service import BookingService
from tolkapp.enums import JobStatus, Role
from tolkapp.events import EventBus
from tolkapp.models import Job, Language, TranslatorAssignment, User, UserLanguage, UserMeta, UserTown

# Monday 19 October 2026, 10:00 local time
NOW = datetime(2026, 10, 19, 10, 0)
NIGHT = datetime(2026, 10, 19, 23, 0)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh schema per test; the service commits, so no savepoint trick here."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# =============================================================================
# Service wiring
# =============================================================================


@pytest.fixture
def sent() -> list:
    """Envelopes handed to the dispatcher, in order"""
    return []


@pytest.fixture
def settings() -> BookingSettings:
    return BookingSettings(sms_number="+46700000000")


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def make_service(db, sent, settings, bus):
    def _make(clock_at: datetime = NOW) -> BookingService:
        return BookingService(db, settings=settings, dispatch=sent.extend, clock=lambda: clock_at, bus=bus)

    return _make


@pytest.fixture
def service(make_service) -> BookingService:
    return make_service()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def language(db) -> Language:
    lang = Language(language="Arabiska")
    db.add(lang)
    db.commit()
    return lang


@pytest.fixture
def make_customer(db):
    def _make(email="kund@example.com", consumer_type="paid", towns=(), **meta) -> User:
        user = User(name="Kund Kundsson", email=email, role=Role.CUSTOMER, mobile="+46701111111")
        db.add(user)
        db.flush()
        meta.setdefault("city", "Stockholm")
        meta.setdefault("customer_type", "Myndighet")
        db.add(UserMeta(user_id=user.id, consumer_type=consumer_type, **meta))
        for town_id in towns:
            db.add(UserTown(user_id=user.id, town_id=town_id))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def customer(make_customer) -> User:
    return make_customer()


@pytest.fixture
def make_translator(db, language):
    def _make(
        email="tolk@example.com",
        lang_ids=None,
        translator_type="professional",
        translator_level="Certified",
        gender="female",
        towns=(),
        mobile="+46702222222",
        **meta,
    ) -> User:
        user = User(name=email.split("@")[0].title(), email=email, role=Role.TRANSLATOR, mobile=mobile)
        db.add(user)
        db.flush()
        db.add(
            UserMeta(
                user_id=user.id,
                translator_type=translator_type,
                translator_level=translator_level,
                gender=gender,
                **meta,
            )
        )
        for lang_id in lang_ids if lang_ids is not None else [language.id]:
            db.add(UserLanguage(user_id=user.id, lang_id=lang_id))
        for town_id in towns:
            db.add(UserTown(user_id=user.id, town_id=town_id))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def translator(make_translator) -> User:
    return make_translator()


@pytest.fixture
def admin(db) -> User:
    user = User(name="Admin", email="admin@example.com", role=Role.ADMIN)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def make_job(db, language, customer):
    def _make(user=None, due=None, created=NOW, **fields) -> Job:
        due = due or NOW + timedelta(days=3)
        values = dict(
            user_id=(user or customer).id,
            from_language_id=language.id,
            immediate="no",
            due=due,
            duration=60,
            certified="yes",
            job_type="paid",
            customer_phone_type="yes",
            customer_physical_type="no",
            status=JobStatus.PENDING.value,
            created_at=created,
            b_created_at=created,
            will_expire_at=will_expire_at(due, created),
        )
        values.update(fields)
        job = Job(**values)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make


@pytest.fixture
def assign(db):
    def _assign(job: Job, translator: User, status: str = JobStatus.ASSIGNED.value) -> TranslatorAssignment:
        assignment = TranslatorAssignment(job_id=job.id, user_id=translator.id, created_at=NOW - timedelta(hours=1))
        db.add(assignment)
        job.status = status
        db.commit()
        return assignment

    return _assign


def channels_of(envelopes) -> list:
    return [(e.channel, e.template, tuple(e.recipients)) for e in envelopes]
