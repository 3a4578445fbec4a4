"""Booking-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    User roles.

    - CUSTOMER: creates bookings
    - TRANSLATOR: accepts and performs bookings
    - ADMIN / SUPERADMIN: monitor, reassign and reconcile bookings
    """

    CUSTOMER = "customer"
    TRANSLATOR = "translator"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPERADMIN)


class JobStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    STARTED = "started"
    COMPLETED = "completed"
    WITHDRAW_BEFORE_24 = "withdrawbefore24"
    WITHDRAW_AFTER_24 = "withdrawafter24"
    TIMEDOUT = "timedout"
    NOT_CARRIED_OUT_CUSTOMER = "not_carried_out_customer"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


ACTIVE_STATUSES = (JobStatus.PENDING, JobStatus.ASSIGNED, JobStatus.STARTED)
HISTORIC_STATUSES = (
    JobStatus.COMPLETED,
    JobStatus.WITHDRAW_BEFORE_24,
    JobStatus.WITHDRAW_AFTER_24,
    JobStatus.TIMEDOUT,
)


class JobType(str, Enum):
    RWS = "rws"
    UNPAID = "unpaid"
    PAID = "paid"
    UNKNOWN = "unknown"


class TranslatorType(str, Enum):
    PROFESSIONAL = "professional"
    RWS_TRANSLATOR = "rwstranslator"
    VOLUNTEER = "volunteer"


class TranslatorLevel(str, Enum):
    CERTIFIED = "Certified"
    CERTIFIED_LAW = "Certified with specialisation in law"
    CERTIFIED_HEALTH = "Certified with specialisation in health care"
    LAYMAN = "Layman"
    READ_COURSES = "Read Translation courses"


class NotificationType(str, Enum):
    SUITABLE_JOB = "suitable_job"
    JOB_ACCEPTED = "job_accepted"
    JOB_CANCELLED = "job_cancelled"
    JOB_EXPIRED = "job_expired"
    SESSION_START_REMIND = "session_start_remind"


class Channel(str, Enum):
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class ErrorType(str, Enum):
    """Kinds of domain failure returned as data"""

    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    CONFLICT = "conflict"
