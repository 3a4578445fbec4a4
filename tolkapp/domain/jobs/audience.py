"""Audience selection - which translators should hear about a booking"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import BookingSettings
from ...models import Job, User
from ...shared import datetime_helper
from .helpers import translator_levels_for, translator_type_for_job
from .repository import JobRepository

logger = logging.getLogger(__name__)


@dataclass
class AudienceSelection:
    immediate: list[User] = field(default_factory=list)
    delayed: list[User] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.immediate) + len(self.delayed)


def is_in_person(job: Job) -> bool:
    return job.customer_physical_type == "yes" and job.customer_phone_type != "yes"


def _meta_flag(user: User, name: str) -> str:
    if user.meta is None:
        return "no"
    return getattr(user.meta, name, None) or "no"


class AudienceSelector:
    """Read-only eligibility rules evaluated over the active translator pool"""

    def __init__(self, db: Session, settings: BookingSettings, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.settings = settings
        self.clock = clock or (lambda: datetime_helper.now(settings.timezone))
        self.repo = JobRepository()

    def matches(
        self,
        job: Job,
        translator: User,
        blacklist: Optional[set[int]] = None,
        customer_towns: Optional[set[int]] = None,
    ) -> bool:
        """Profile-level eligibility of one translator for one job"""
        meta = translator.meta
        if meta is None:
            return False
        if _meta_flag(translator, "not_get_notification") == "yes":
            return False
        if job.immediate == "yes" and _meta_flag(translator, "not_get_emergency") == "yes":
            return False
        if meta.translator_type != translator_type_for_job(job.job_type):
            return False
        if meta.translator_level not in translator_levels_for(job.certified):
            return False
        if job.from_language_id not in {lang.lang_id for lang in translator.languages}:
            return False
        if job.gender and meta.gender != job.gender:
            return False

        if blacklist is None:
            blacklist = self.repo.get_blacklisted_translator_ids(self.db, job.user_id)
        if translator.id in blacklist:
            return False

        if is_in_person(job):
            if customer_towns is None:
                customer_towns = self.repo.get_town_ids(self.db, job.user_id)
            translator_towns = {town.town_id for town in translator.towns}
            if customer_towns and not customer_towns & translator_towns:
                return False

        return True

    def is_available(self, job: Job, translator: User) -> bool:
        return not self.repo.is_translator_already_booked(
            self.db, translator.id, job.due, job.duration, exclude_job_id=job.id
        )

    def eligible_translators(self, job: Job, exclude_user_id: Optional[int] = None) -> list[User]:
        """All eligible translators, ignoring the night-time partition"""
        blacklist = self.repo.get_blacklisted_translator_ids(self.db, job.user_id)
        customer_towns = self.repo.get_town_ids(self.db, job.user_id)
        return [
            translator
            for translator in self.repo.get_active_translators(self.db, exclude_user_id)
            if self.matches(job, translator, blacklist, customer_towns) and self.is_available(job, translator)
        ]

    def needs_delay(self, user: User) -> bool:
        """Night-time pushes wait for users who opted out of them"""
        return (
            datetime_helper.is_night_time(
                self.clock(), self.settings.night_start_hour, self.settings.night_end_hour
            )
            and _meta_flag(user, "not_get_nighttime") == "yes"
        )

    def select_candidate_translators(self, job: Job, exclude_user_id: Optional[int] = None) -> AudienceSelection:
        selection = AudienceSelection()
        for translator in self.eligible_translators(job, exclude_user_id):
            if self.needs_delay(translator):
                selection.delayed.append(translator)
            else:
                selection.immediate.append(translator)

        logger.debug(
            f"🎯 Job {job.id}: {len(selection.immediate)} immediate, {len(selection.delayed)} delayed translators"
        )
        return selection
