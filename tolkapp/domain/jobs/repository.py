"""Job repository - Database operations for bookings and translator assignments"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from ...enums import JobStatus, Role
from ...models import (
    Distance,
    Job,
    Language,
    TranslatorAssignment,
    User,
    UsersBlacklist,
    UserTown,
)


class JobRepository:
    """Repository for booking database operations. Callers own the transaction."""

    @staticmethod
    def get_job(db: Session, job_id: int) -> Optional[Job]:
        return db.query(Job).filter(Job.id == job_id).first()

    @staticmethod
    def get_job_for_update(db: Session, job_id: int) -> Optional[Job]:
        """Row-locked load that refreshes any stale copy in the session; the lock lasts until commit"""
        return db.query(Job).filter(Job.id == job_id).populate_existing().with_for_update().first()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def get_language_name(db: Session, lang_id: int) -> str:
        language = db.query(Language).filter(Language.id == lang_id).first()
        return language.language if language else ""

    @staticmethod
    def create_job(db: Session, **job_data) -> Job:
        job = Job(**job_data)
        db.add(job)
        db.flush()
        return job

    @staticmethod
    def apply_updates(job: Job, updates: dict) -> Job:
        for key, value in updates.items():
            if hasattr(job, key):
                setattr(job, key, value)
        return job

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    @staticmethod
    def get_current_assignment(db: Session, job_id: int) -> Optional[TranslatorAssignment]:
        """The one assignment with neither cancel_at nor completed_at set"""
        return (
            db.query(TranslatorAssignment)
            .filter(
                TranslatorAssignment.job_id == job_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.is_(None),
            )
            .order_by(TranslatorAssignment.id.desc())
            .first()
        )

    @staticmethod
    def get_current_or_completed_assignment(db: Session, job_id: int) -> Optional[TranslatorAssignment]:
        """Active row, else the row that completed the job"""
        current = JobRepository.get_current_assignment(db, job_id)
        if current:
            return current
        return (
            db.query(TranslatorAssignment)
            .filter(
                TranslatorAssignment.job_id == job_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.isnot(None),
            )
            .order_by(TranslatorAssignment.id.desc())
            .first()
        )

    @staticmethod
    def add_assignment(db: Session, job_id: int, translator_id: int, created_at: datetime) -> TranslatorAssignment:
        assignment = TranslatorAssignment(job_id=job_id, user_id=translator_id, created_at=created_at)
        db.add(assignment)
        db.flush()
        return assignment

    @staticmethod
    def cancel_active_assignments(db: Session, job_id: int, cancel_at: datetime) -> int:
        return (
            db.query(TranslatorAssignment)
            .filter(
                TranslatorAssignment.job_id == job_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.is_(None),
            )
            .update({TranslatorAssignment.cancel_at: cancel_at}, synchronize_session="fetch")
        )

    @staticmethod
    def delete_assignment(db: Session, job_id: int, translator_id: int) -> int:
        return (
            db.query(TranslatorAssignment)
            .filter(
                TranslatorAssignment.job_id == job_id,
                TranslatorAssignment.user_id == translator_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.is_(None),
            )
            .delete(synchronize_session="fetch")
        )

    @staticmethod
    def claim_pending_job(db: Session, job_id: int) -> bool:
        """
        Compare-and-set pending -> assigned.

        Returns True only for the caller whose UPDATE matched the pending row,
        so concurrent accepts produce exactly one winner.
        """
        result = db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.PENDING.value)
            .values(status=JobStatus.ASSIGNED.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def expire_pending_job(db: Session, job_id: int, now: datetime) -> bool:
        """Compare-and-set pending -> timedout; False when the job moved on since it was listed"""
        result = db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.PENDING.value, Job.will_expire_at <= now)
            .values(status=JobStatus.TIMEDOUT.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def is_translator_already_booked(
        db: Session, translator_id: int, due: datetime, duration: int, exclude_job_id: Optional[int] = None
    ) -> bool:
        """Whether the translator holds an active assignment overlapping [due, due + duration)"""
        query = (
            db.query(Job)
            .join(TranslatorAssignment, TranslatorAssignment.job_id == Job.id)
            .filter(
                TranslatorAssignment.user_id == translator_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.is_(None),
                Job.status.in_([JobStatus.ASSIGNED.value, JobStatus.STARTED.value]),
            )
        )
        if exclude_job_id is not None:
            query = query.filter(Job.id != exclude_job_id)

        end = due + timedelta(minutes=duration or 0)
        for booked in query.all():
            booked_end = booked.due + timedelta(minutes=booked.duration or 0)
            if booked.due < end and due < booked_end:
                return True
        return False

    # ------------------------------------------------------------------
    # Audience lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_active_translators(db: Session, exclude_user_id: Optional[int] = None) -> list[User]:
        query = (
            db.query(User)
            .options(joinedload(User.meta), joinedload(User.languages), joinedload(User.towns))
            .filter(User.role == Role.TRANSLATOR, User.is_active.is_(True))
        )
        if exclude_user_id:
            query = query.filter(User.id != exclude_user_id)
        return query.order_by(User.id).all()

    @staticmethod
    def get_blacklisted_translator_ids(db: Session, customer_id: int) -> set[int]:
        rows = db.query(UsersBlacklist.translator_id).filter(UsersBlacklist.user_id == customer_id).all()
        return {row[0] for row in rows}

    @staticmethod
    def get_town_ids(db: Session, user_id: int) -> set[int]:
        rows = db.query(UserTown.town_id).filter(UserTown.user_id == user_id).all()
        return {row[0] for row in rows}

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    @staticmethod
    def get_customer_jobs(db: Session, user_id: int, statuses: list[str]) -> list[Job]:
        return (
            db.query(Job)
            .filter(Job.user_id == user_id, Job.status.in_(statuses))
            .order_by(Job.due.asc())
            .all()
        )

    @staticmethod
    def get_translator_active_jobs(db: Session, translator_id: int) -> list[Job]:
        return (
            db.query(Job)
            .join(TranslatorAssignment, TranslatorAssignment.job_id == Job.id)
            .filter(
                TranslatorAssignment.user_id == translator_id,
                TranslatorAssignment.cancel_at.is_(None),
                TranslatorAssignment.completed_at.is_(None),
                Job.status.in_([JobStatus.ASSIGNED.value, JobStatus.STARTED.value]),
            )
            .order_by(Job.due.asc())
            .all()
        )

    @staticmethod
    def get_customer_history_query(db: Session, user_id: int, statuses: list[str]):
        return db.query(Job).filter(Job.user_id == user_id, Job.status.in_(statuses)).order_by(Job.due.desc())

    @staticmethod
    def get_translator_history_query(db: Session, translator_id: int, statuses: list[str]):
        return (
            db.query(Job)
            .join(TranslatorAssignment, TranslatorAssignment.job_id == Job.id)
            .filter(
                TranslatorAssignment.user_id == translator_id,
                TranslatorAssignment.cancel_at.is_(None),
                Job.status.in_(statuses),
            )
            .order_by(Job.due.desc())
        )

    @staticmethod
    def get_open_future_jobs(db: Session, now: datetime) -> list[Job]:
        return (
            db.query(Job)
            .filter(Job.status == JobStatus.PENDING.value, Job.due >= now)
            .order_by(Job.due.asc())
            .all()
        )

    @staticmethod
    def get_expired_pending_jobs(db: Session, now: datetime) -> list[Job]:
        return (
            db.query(Job)
            .filter(
                Job.status == JobStatus.PENDING.value,
                Job.will_expire_at.isnot(None),
                Job.will_expire_at <= now,
            )
            .all()
        )

    @staticmethod
    def upsert_distance(db: Session, job_id: int, distance: Optional[str], time: Optional[str]) -> Distance:
        row = db.query(Distance).filter(Distance.job_id == job_id).first()
        if row is None:
            row = Distance(job_id=job_id)
            db.add(row)
        if distance is not None:
            row.distance = distance
        if time is not None:
            row.time = time
        return row
