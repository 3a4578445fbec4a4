from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .enums import JobStatus, Role


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    mobile = Column(String(50), nullable=True)  # E.164 format for SMS
    role = Column(
        Enum(Role, native_enum=False, values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    meta = relationship("UserMeta", back_populates="user", uselist=False)
    languages = relationship("UserLanguage", back_populates="user")
    towns = relationship("UserTown", back_populates="user")
    jobs = relationship("Job", back_populates="user", foreign_keys="Job.user_id")


class UserMeta(Base):
    """Profile attributes that drive booking rules and notification preferences"""

    __tablename__ = "user_meta"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Customer side
    consumer_type = Column(String(50), nullable=True)  # rwsconsumer, ngo, paid
    customer_type = Column(String(100), nullable=True)
    city = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    instructions = Column(Text, nullable=True)

    # Translator side
    translator_type = Column(String(50), nullable=True)  # professional, rwstranslator, volunteer
    translator_level = Column(String(100), nullable=True)
    gender = Column(String(10), nullable=True)  # male, female

    # Notification preferences ("yes" opts out)
    not_get_emergency = Column(String(3), default="no", nullable=False)
    not_get_notification = Column(String(3), default="no", nullable=False)
    not_get_nighttime = Column(String(3), default="no", nullable=False)

    user = relationship("User", back_populates="meta")


class Language(Base):
    __tablename__ = "languages"

    id = Column(Integer, primary_key=True, index=True)
    language = Column(String(100), nullable=False)
    active = Column(Boolean, default=True, nullable=False)


class UserLanguage(Base):
    __tablename__ = "user_languages"
    __table_args__ = (UniqueConstraint("user_id", "lang_id", name="uq_user_language"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    lang_id = Column(Integer, ForeignKey("languages.id"), nullable=False)

    user = relationship("User", back_populates="languages")


class UserTown(Base):
    __tablename__ = "user_towns"
    __table_args__ = (UniqueConstraint("user_id", "town_id", name="uq_user_town"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    town_id = Column(Integer, nullable=False)

    user = relationship("User", back_populates="towns")


class UsersBlacklist(Base):
    """Customer → translator exclusions"""

    __tablename__ = "users_blacklist"
    __table_args__ = (UniqueConstraint("user_id", "translator_id", name="uq_blacklist_pair"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    translator_id = Column(Integer, ForeignKey("users.id"), nullable=False)


class Job(Base):
    """A single interpretation booking"""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    from_language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)

    # Requirements
    immediate = Column(String(3), default="no", nullable=False)  # yes, no
    gender = Column(String(10), nullable=True)
    certified = Column(String(20), nullable=True)  # normal, yes, law, n_law, health, n_health, both
    job_type = Column(String(20), nullable=True)  # rws, unpaid, paid, unknown
    customer_phone_type = Column(String(3), default="no", nullable=False)
    customer_physical_type = Column(String(3), default="no", nullable=False)

    # Scheduling
    due = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False)  # minutes
    will_expire_at = Column(DateTime, nullable=True)
    b_created_at = Column(DateTime, nullable=True)

    # Status workflow: pending → assigned → started → completed
    # Side exits: withdrawbefore24, withdrawafter24, timedout, not_carried_out_customer
    status = Column(String(50), default=JobStatus.PENDING.value, nullable=False, index=True)
    end_at = Column(DateTime, nullable=True)
    session_time = Column(String(20), nullable=True)  # H:MM:SS
    withdraw_at = Column(DateTime, nullable=True)

    # Contact and location
    town = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    instructions = Column(Text, nullable=True)
    user_email = Column(String(255), nullable=True)  # Overrides requester email for notices
    reference = Column(String(255), nullable=True)

    # Admin bookkeeping
    admin_comments = Column(Text, nullable=True)
    flagged = Column(String(3), default="no", nullable=False)
    manually_handled = Column(String(3), default="no", nullable=False)
    by_admin = Column(String(3), default="no", nullable=False)
    ignore = Column(Boolean, default=False, nullable=False)
    ignore_expired = Column(Boolean, default=False, nullable=False)

    # Reminder counters cleared on reopen
    emailsent = Column(Integer, default=0, nullable=False)
    emailsenttovirpal = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="jobs", foreign_keys=[user_id])
    language = relationship("Language")
    assignments = relationship(
        "TranslatorAssignment",
        back_populates="job",
        order_by="TranslatorAssignment.id",
    )
    distance = relationship("Distance", back_populates="job", uselist=False)


class TranslatorAssignment(Base):
    """One row per translator ever linked to a job"""

    __tablename__ = "translator_job_rel"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())  # Acceptance time
    cancel_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    completed_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    job = relationship("Job", back_populates="assignments")
    user = relationship("User", foreign_keys=[user_id])


class Distance(Base):
    __tablename__ = "distances"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), unique=True, nullable=False)
    distance = Column(String(50), nullable=True)
    time = Column(String(50), nullable=True)

    job = relationship("Job", back_populates="distance")
