"""Reporting service - Read-only admin listings of bookings"""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Query, Session

from ...config import BookingSettings, get_settings
from ...enums import JobStatus
from ...models import Job, TranslatorAssignment, User
from ...shared import datetime_helper
from ...shared.validators import is_blank
from .helpers import serialize_job

logger = logging.getLogger(__name__)


def session_minutes(session_time: Optional[str]) -> Optional[float]:
    """'01:30:30' -> 90.5; None when the value is not H:MM:SS"""
    if not session_time:
        return None
    parts = session_time.split(":")
    if len(parts) < 3:
        return None
    try:
        return int(parts[0]) * 60 + int(parts[1]) + int(parts[2]) / 60
    except ValueError:
        return None


def _as_list(value) -> list:
    if is_blank(value):
        return []
    return list(value) if isinstance(value, (list, tuple, set)) else [value]


class ReportingService:
    """Admin job listings with shared filters and fixed-size pages"""

    def __init__(
        self,
        db: Session,
        settings: Optional[BookingSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock or (lambda: datetime_helper.now(self.settings.timezone))

    def _user_id_for(self, email: str) -> Optional[int]:
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        return user.id if user else None

    def apply_filters(self, query: Query, filters: dict) -> Query:
        """
        Narrow a job query by the admin filter form.

        Supported keys: id, lang, status, job_type (single value or list),
        customer_email, translator_email, filter_timetype ("created" or
        "due") with from / to dates (Y-m-d), and ignore.
        """
        if not is_blank(filters.get("id")):
            query = query.filter(Job.id.in_([int(v) for v in _as_list(filters["id"])]))

        langs = _as_list(filters.get("lang"))
        if langs:
            query = query.filter(Job.from_language_id.in_([int(v) for v in langs]))

        statuses = _as_list(filters.get("status"))
        if statuses:
            query = query.filter(Job.status.in_(statuses))

        job_types = _as_list(filters.get("job_type"))
        if job_types:
            query = query.filter(Job.job_type.in_(job_types))

        if not is_blank(filters.get("customer_email")):
            customer_id = self._user_id_for(filters["customer_email"])
            if customer_id:
                query = query.filter(Job.user_id == customer_id)

        if not is_blank(filters.get("translator_email")):
            translator_id = self._user_id_for(filters["translator_email"])
            if translator_id:
                job_ids = self.db.query(TranslatorAssignment.job_id).filter(
                    TranslatorAssignment.user_id == translator_id
                )
                query = query.filter(Job.id.in_(job_ids))

        time_type = filters.get("filter_timetype")
        if time_type in ("created", "due"):
            column = Job.created_at if time_type == "created" else Job.due
            if not is_blank(filters.get("from")):
                query = query.filter(column >= datetime.strptime(filters["from"], "%Y-%m-%d"))
            if not is_blank(filters.get("to")):
                end = datetime.strptime(filters["to"], "%Y-%m-%d") + timedelta(hours=23, minutes=59)
                query = query.filter(column <= end)

        if filters.get("ignore") is not None:
            query = query.filter(Job.ignore.is_(bool(filters["ignore"])))

        return query

    def _page(self, query: Query, page: int) -> dict:
        size = self.settings.page_size
        page = max(int(page or 1), 1)
        total = query.count()
        jobs = query.offset((page - 1) * size).limit(size).all()
        return {
            "jobs": [serialize_job(job) for job in jobs],
            "total": total,
            "num_pages": math.ceil(total / size),
            "current_page": page,
        }

    def list_jobs(self, filters: Optional[dict] = None, page: int = 1) -> dict:
        query = self.apply_filters(self.db.query(Job), filters or {})
        return self._page(query.order_by(Job.created_at.desc(), Job.id.desc()), page)

    def alerts(self, filters: Optional[dict] = None, page: int = 1) -> dict:
        """Bookings whose recorded session ran at least twice the booked duration"""
        overrun_ids = []
        rows = self.db.query(Job.id, Job.session_time, Job.duration).filter(Job.session_time.isnot(None)).all()
        for job_id, session_time, duration in rows:
            minutes = session_minutes(session_time)
            if minutes is not None and minutes >= (duration or 0) * 2:
                overrun_ids.append(job_id)
        logger.debug(f"🚨 {len(overrun_ids)} bookings ran at least twice their duration")

        query = self.db.query(Job).filter(Job.id.in_(overrun_ids), Job.ignore.is_(False))
        query = self.apply_filters(query, filters or {})
        return self._page(query.order_by(Job.created_at.desc(), Job.id.desc()), page)

    def booking_expire_no_accepted(self, filters: Optional[dict] = None, page: int = 1) -> dict:
        """Open future bookings still waiting for a translator"""
        query = self.db.query(Job).filter(
            Job.status == JobStatus.PENDING.value,
            Job.due >= self.clock(),
            Job.ignore_expired.is_(False),
        )
        query = self.apply_filters(query, filters or {})
        return self._page(query.order_by(Job.due.asc(), Job.id.asc()), page)
