"""Pure booking rules: expiry, certification tiers, job-type mapping and payload shaping"""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from ...enums import JobType, TranslatorLevel, TranslatorType
from ...shared.datetime_helper import format_due

ALL_LEVELS = tuple(level.value for level in TranslatorLevel)
CERTIFIED_LEVELS = (
    TranslatorLevel.CERTIFIED.value,
    TranslatorLevel.CERTIFIED_LAW.value,
    TranslatorLevel.CERTIFIED_HEALTH.value,
)


def will_expire_at(due: datetime, created: datetime) -> datetime:
    """
    When an unaccepted booking should time out.

    The closer the booking is to its due time, the sooner it expires:
    - due within 90 minutes: at due
    - due within 24 hours: 90 minutes after creation
    - due within 72 hours: 16 hours after creation
    - later: 48 hours before due
    """
    difference = due - created

    if difference <= timedelta(minutes=90):
        return due
    if difference <= timedelta(hours=24):
        return created + timedelta(minutes=90)
    if difference <= timedelta(hours=72):
        return created + timedelta(hours=16)
    return due - timedelta(hours=48)


def derive_gender(job_for: Iterable[str]) -> Optional[str]:
    job_for = set(job_for or [])
    if "male" in job_for:
        return "male"
    if "female" in job_for:
        return "female"
    return None


def derive_certified(job_for: Iterable[str]) -> str:
    """Fold the multi-select "job for" input into one certification tier"""
    job_for = set(job_for or [])
    normal = "normal" in job_for

    if normal and "certified" in job_for:
        return "both"
    if normal and "certified_in_law" in job_for:
        return "n_law"
    if normal and "certified_in_helth" in job_for:
        return "n_health"
    if "certified" in job_for:
        return "yes"
    if "certified_in_law" in job_for:
        return "law"
    if "certified_in_helth" in job_for:
        return "health"
    return "normal"


def job_type_for_consumer(consumer_type: Optional[str]) -> str:
    return {
        "rwsconsumer": JobType.RWS.value,
        "ngo": JobType.UNPAID.value,
        "paid": JobType.PAID.value,
    }.get(consumer_type or "", JobType.UNKNOWN.value)


def translator_type_for_job(job_type: Optional[str]) -> str:
    return {
        JobType.PAID.value: TranslatorType.PROFESSIONAL.value,
        JobType.RWS.value: TranslatorType.RWS_TRANSLATOR.value,
    }.get(job_type or "", TranslatorType.VOLUNTEER.value)


def translator_levels_for(certified: Optional[str]) -> tuple[str, ...]:
    """Translator levels able to serve a job's certification tier"""
    if certified in ("yes", "both"):
        return CERTIFIED_LEVELS
    if certified in ("law", "n_law"):
        return (TranslatorLevel.CERTIFIED_LAW.value,)
    if certified in ("health", "n_health"):
        return (TranslatorLevel.CERTIFIED_HEALTH.value,)
    if certified == "normal":
        return (TranslatorLevel.LAYMAN.value, TranslatorLevel.READ_COURSES.value)
    return ALL_LEVELS


def gender_label(gender: Optional[str]) -> Optional[str]:
    if not gender:
        return None
    return "Man" if gender == "male" else "Kvinna"


def job_for_codes(gender: Optional[str], certified: Optional[str]) -> list[str]:
    """Input-style encoding used in notification payloads (both -> normal + certified)"""
    codes = []
    label = gender_label(gender)
    if label:
        codes.append(label)
    if certified:
        if certified == "both":
            codes.extend(["normal", "certified"])
        elif certified == "yes":
            codes.append("certified")
        else:
            codes.append(certified)
    return codes


def get_job_for(gender: Optional[str], certified: Optional[str]) -> list[str]:
    """Human-readable (Swedish) description of who the job is for"""
    labels = []
    label = gender_label(gender)
    if label:
        labels.append(label)
    if certified:
        if certified == "both":
            labels.extend(["Godkänd tolk", "Auktoriserad"])
        elif certified == "yes":
            labels.append("Auktoriserad")
        elif certified == "n_health":
            labels.append("Sjukvårdstolk")
        elif certified in ("law", "n_law"):
            labels.append("Rätttstolk")
        else:
            labels.append(certified)
    return labels


def job_to_data(job) -> dict:
    """Serializable snapshot of a job used in push payloads and domain events"""
    meta = job.user.meta if job.user else None
    return {
        "job_id": job.id,
        "from_language_id": job.from_language_id,
        "immediate": job.immediate,
        "duration": job.duration,
        "status": job.status,
        "gender": job.gender,
        "certified": job.certified,
        "due": format_due(job.due),
        "job_type": job.job_type,
        "customer_phone_type": job.customer_phone_type,
        "customer_physical_type": job.customer_physical_type,
        "customer_town": job.town or (meta.city if meta else None),
        "customer_type": meta.customer_type if meta else None,
        "due_date": job.due.strftime("%Y-%m-%d"),
        "due_time": job.due.strftime("%H:%M:%S"),
        "job_for": job_for_codes(job.gender, job.certified),
    }


def serialize_job(job) -> dict:
    """JSON-friendly view of a job for API responses"""
    return {
        "id": job.id,
        "user_id": job.user_id,
        "from_language_id": job.from_language_id,
        "status": job.status,
        "immediate": job.immediate,
        "due": format_due(job.due),
        "duration": job.duration,
        "gender": job.gender,
        "certified": job.certified,
        "job_type": job.job_type,
        "customer_phone_type": job.customer_phone_type,
        "customer_physical_type": job.customer_physical_type,
        "town": job.town,
        "will_expire_at": format_due(job.will_expire_at) if job.will_expire_at else None,
        "end_at": format_due(job.end_at) if job.end_at else None,
        "session_time": job.session_time,
        "admin_comments": job.admin_comments,
        "job_for": get_job_for(job.gender, job.certified),
    }
