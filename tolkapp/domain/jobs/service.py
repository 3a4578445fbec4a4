"""Booking service - Lifecycle operations for interpretation jobs"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from ...config import BookingSettings, get_settings
from ...enums import ACTIVE_STATUSES, HISTORIC_STATUSES, JobStatus, NotificationType, Role
from ...events import EventBus, JobCanceled, JobCreated, SessionEnded, event_bus
from ...exceptions import JobNotFoundError, UserNotFoundError
from ...models import Job, User
from ...services.notification_service import (
    NotificationEnvelope,
    NotificationService,
    email_envelope,
    push_envelope,
    sms_envelope,
)
from ...shared import datetime_helper
from ...shared.logs import ADMIN_LOGGER_NAME, booking_logger
from ...shared.results import authorization_fail, conflict_fail, success, validation_fail
from ...shared.validators import is_blank, parse_due, yes_no
from . import messages
from .audience import AudienceSelector
from .helpers import (
    derive_certified,
    derive_gender,
    job_for_codes,
    job_to_data,
    job_type_for_consumer,
    serialize_job,
    will_expire_at,
)
from .repository import JobRepository
from .state_machine import Applied, Effect, TransitionContext, transition

logger = logging.getLogger(__name__)
admin_logger = logging.getLogger(ADMIN_LOGGER_NAME)

Dispatch = Callable[[list[NotificationEnvelope]], Any]


def _parse_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).strip())


class BookingService:
    """
    Service layer for the booking lifecycle.

    Each state-changing operation runs in one transaction. Notifications are
    queued while the operation runs and handed to ``dispatch`` only after the
    commit succeeded; domain events are published after that.
    """

    def __init__(
        self,
        db: Session,
        settings: Optional[BookingSettings] = None,
        dispatch: Optional[Dispatch] = None,
        clock: Optional[Callable[[], datetime]] = None,
        bus: Optional[EventBus] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock or (lambda: datetime_helper.now(self.settings.timezone))
        self.dispatch = dispatch or NotificationService().dispatch
        self.bus = bus or event_bus
        self.repo = JobRepository()
        self.audience = AudienceSelector(db, self.settings, self.clock)
        self._outbox: list[NotificationEnvelope] = []
        self._events: list = []

    # ------------------------------------------------------------------
    # Transaction / outbox plumbing
    # ------------------------------------------------------------------

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self._rollback()
            raise
        self._flush_outbox()

    def _rollback(self) -> None:
        self.db.rollback()
        self._outbox.clear()
        self._events.clear()

    def _flush_outbox(self) -> None:
        envelopes, self._outbox = self._outbox, []
        events, self._events = self._events, []

        if envelopes:
            try:
                self.dispatch(envelopes)
            except Exception as e:
                logger.error(f"❌ Failed to hand {len(envelopes)} notifications to dispatcher: {e}")

        for event in events:
            self.bus.publish(event)

    def _get_job(self, job_id, lock: bool = False) -> Job:
        """Load a job; ``lock`` row-locks it for a read-modify-write until the next commit or rollback"""
        load = self.repo.get_job_for_update if lock else self.repo.get_job
        job = load(self.db, int(job_id)) if job_id not in (None, "") else None
        if not job:
            raise JobNotFoundError(job_id)
        return job

    def _get_user(self, user_id) -> User:
        user = self.repo.get_user(self.db, int(user_id)) if user_id not in (None, "") else None
        if not user:
            raise UserNotFoundError(user_id)
        return user

    # ------------------------------------------------------------------
    # Recipients and message building
    # ------------------------------------------------------------------

    def _language(self, lang_id: int) -> str:
        return self.repo.get_language_name(self.db, lang_id)

    @staticmethod
    def _requester_email(job: Job) -> str:
        return job.user_email or job.user.email

    @staticmethod
    def _wants_push(user: User) -> bool:
        return not (user.meta and user.meta.not_get_notification == "yes")

    def _send_after(self, user: User) -> Optional[str]:
        if not self.audience.needs_delay(user):
            return None
        return datetime_helper.send_after_string(
            self.clock(), self.settings.business_start_hour, self.settings.timezone
        )

    def _current_translator(self, job: Job) -> Optional[User]:
        assignment = self.repo.get_current_assignment(self.db, job.id)
        return assignment.user if assignment else None

    def _email_payload(self, job: Job, translator: Optional[User] = None, **extra) -> dict:
        payload = {
            "job_id": job.id,
            "language": self._language(job.from_language_id),
            "due": datetime_helper.format_due(job.due),
            "duration": job.duration,
            "town": job.town,
            "translator_name": translator.name if translator else None,
        }
        payload.update(extra)
        return payload

    def _email_requester(self, job: Job, subject: str, template: str, payload: dict) -> None:
        self._outbox.append(
            email_envelope(job.id, self._requester_email(job), job.user.name, subject, template, payload)
        )

    def _email_user(self, job: Job, user: Optional[User], subject: str, template: str, payload: dict) -> None:
        if user is None:
            return
        self._outbox.append(email_envelope(job.id, user.email, user.name, subject, template, payload))

    def _push_user(self, job: Job, user: Optional[User], contents: dict, data: dict) -> None:
        """Directed push to one user, honoring their notification preferences"""
        if user is None or not self._wants_push(user):
            return
        self._outbox.append(push_envelope(job.id, [user.email], contents, data, self._send_after(user)))

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def store(self, user: User, data: dict) -> dict:
        """Create a booking for a customer"""
        if user.role != Role.CUSTOMER:
            return authorization_fail(messages.TRANSLATOR_CANNOT_BOOK)

        immediate = yes_no(data.get("immediate")) == "yes"

        required = [("from_language_id", messages.REQUIRED_FIELD), ("duration", messages.REQUIRED_FIELD)]
        if not immediate:
            required += [
                ("due_date", messages.REQUIRED_FIELD),
                ("due_time", messages.REQUIRED_FIELD),
                ("customer_phone_type", messages.REQUIRED_CHOICE),
            ]
        for field_name, message in required:
            if is_blank(data.get(field_name)):
                return validation_fail(message, field_name)

        now = self.clock()
        customer_phone_type = yes_no(data.get("customer_phone_type"))
        if immediate:
            due = now + timedelta(minutes=self.settings.immediate_lead_minutes)
            customer_phone_type = "yes"
        else:
            try:
                due = parse_due(str(data["due_date"]), str(data["due_time"]))
            except ValueError:
                return validation_fail(messages.REQUIRED_FIELD, "due_date")
            if due < now:
                return validation_fail(messages.BOOKING_IN_PAST)

        job_for = data.get("job_for") or []
        meta = user.meta
        job = self.repo.create_job(
            self.db,
            user_id=user.id,
            from_language_id=int(data["from_language_id"]),
            duration=int(data["duration"]),
            immediate="yes" if immediate else "no",
            due=due,
            customer_phone_type=customer_phone_type,
            customer_physical_type=yes_no(data.get("customer_physical_type")),
            gender=derive_gender(job_for),
            certified=derive_certified(job_for),
            job_type=job_type_for_consumer(meta.consumer_type if meta else None),
            b_created_at=now,
            created_at=now,
            will_expire_at=will_expire_at(due, now),
            by_admin=yes_no(data.get("by_admin")),
            status=JobStatus.PENDING.value,
        )
        self._commit()

        logger.info(f"📥 Created {'immediate' if immediate else 'regular'} booking {job.id} for user {user.id}")
        return success(
            id=job.id,
            job_for=job_for_codes(job.gender, job.certified),
            customer_town=meta.city if meta else None,
            customer_type=meta.customer_type if meta else None,
            customer_physical_type=job.customer_physical_type,
            type="immediate" if immediate else "regular",
        )

    def store_job_email(self, data: dict) -> dict:
        """Attach contact details to a new booking and confirm it to the requester"""
        job = self._get_job(data.get("job_id") or data.get("user_email_job_id"), lock=True)
        requester = job.user
        meta = requester.meta

        job.user_email = data.get("user_email") or None
        job.reference = data.get("reference") or ""
        if "address" in data:
            job.address = data.get("address") or (meta.address if meta else None)
            job.instructions = data.get("instructions") or (meta.instructions if meta else None)
            job.town = data.get("town") or (meta.city if meta else None)

        self._email_requester(
            job,
            messages.subject_job_created(job.id),
            "job-created",
            self._email_payload(job),
        )
        self._events.append(JobCreated(job_id=job.id, user_id=requester.id, data=job_to_data(job)))
        self._commit()

        return success(type=data.get("user_type"), job=serialize_job(job))

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def get_job(self, job_id) -> dict:
        job = self._get_job(job_id)
        view = serialize_job(job)
        translator = self._current_translator(job)
        view["translator"] = {"id": translator.id, "name": translator.name} if translator else None
        return view

    def get_users_jobs(self, user_id) -> dict:
        """Current bookings split into emergency and normal"""
        user = self._get_user(user_id)

        if user.role == Role.CUSTOMER:
            jobs = self.repo.get_customer_jobs(self.db, user.id, [s.value for s in ACTIVE_STATUSES])
            user_type = "customer"
        elif user.role == Role.TRANSLATOR:
            jobs = self.repo.get_translator_active_jobs(self.db, user.id)
            user_type = "translator"
        else:
            jobs, user_type = [], ""

        emergency = [serialize_job(job) for job in jobs if job.immediate == "yes"]
        normal = sorted(
            (job for job in jobs if job.immediate != "yes"),
            key=lambda job: job.due,
        )
        return {
            "emergency_jobs": emergency,
            "normal_jobs": [serialize_job(job) for job in normal],
            "user_type": user_type,
        }

    def get_users_jobs_history(self, user_id, page: int = 1) -> dict:
        """Finished bookings, newest first, one page at a time"""
        user = self._get_user(user_id)
        page = max(int(page or 1), 1)
        statuses = [s.value for s in HISTORIC_STATUSES]

        if user.role == Role.CUSTOMER:
            query = self.repo.get_customer_history_query(self.db, user.id, statuses)
            user_type = "customer"
        elif user.role == Role.TRANSLATOR:
            query = self.repo.get_translator_history_query(self.db, user.id, statuses)
            user_type = "translator"
        else:
            return {"jobs": [], "user_type": "", "num_pages": 0, "current_page": page}

        size = self.settings.page_size
        total = query.count()
        jobs = query.offset((page - 1) * size).limit(size).all()
        return {
            "jobs": [serialize_job(job) for job in jobs],
            "user_type": user_type,
            "num_pages": math.ceil(total / size),
            "current_page": page,
        }

    def get_potential_jobs(self, user: User) -> list[dict]:
        """Open future bookings this translator could accept"""
        if user.role != Role.TRANSLATOR:
            return []
        translator = self._get_user(user.id)
        now = self.clock()
        return [
            serialize_job(job)
            for job in self.repo.get_open_future_jobs(self.db, now)
            if self.audience.matches(job, translator) and self.audience.is_available(job, translator)
        ]

    # ------------------------------------------------------------------
    # Broadcasts
    # ------------------------------------------------------------------

    def _queue_suitable_translators(self, job: Job, exclude_user_id: Optional[int] = None) -> int:
        language = self._language(job.from_language_id)
        data = job_to_data(job)
        data.update(notification_type=NotificationType.SUITABLE_JOB.value, language=language)
        contents = messages.new_booking_push(language, job.duration, job.due, job.immediate == "yes")

        selection = self.audience.select_candidate_translators(job, exclude_user_id)
        if selection.immediate:
            self._outbox.append(push_envelope(job.id, [t.email for t in selection.immediate], contents, data))
        if selection.delayed:
            send_after = datetime_helper.send_after_string(
                self.clock(), self.settings.business_start_hour, self.settings.timezone
            )
            self._outbox.append(
                push_envelope(job.id, [t.email for t in selection.delayed], contents, data, send_after)
            )

        logger.info(
            f"📣 Job {job.id} offered to {len(selection.immediate)} translators now, "
            f"{len(selection.delayed)} after night hours"
        )
        return len(selection)

    def notify_suitable_translators(self, job_id, exclude_user_id: Optional[int] = None) -> dict:
        """Offer a booking to every eligible translator"""
        job = self._get_job(job_id)
        count = self._queue_suitable_translators(job, exclude_user_id)
        self._flush_outbox()
        return success(recipients=count)

    def send_notification_by_admin_cancel_job(self, job_id) -> dict:
        return self.notify_suitable_translators(job_id)

    def send_sms_notification_to_translator(self, job_id) -> int:
        """Text every eligible translator about a booking, ignoring night-time preferences"""
        job = self._get_job(job_id)
        translators = self.audience.eligible_translators(job)
        meta = job.user.meta
        city = job.town or (meta.city if meta else None)

        try:
            body = messages.render_sms(job, city)
        except Exception as e:
            logger.error(f"❌ Could not build SMS for job {job.id}: {e}")
            return 0

        for translator in translators:
            self._outbox.append(sms_envelope(job.id, translator.mobile, body, self.settings.sms_number))
        self._flush_outbox()

        logger.info(f"📱 Queued {len(translators)} SMS for job {job.id}")
        return len(translators)

    def send_expired_notification(self, job: Job, user: User) -> None:
        language = self._language(job.from_language_id)
        self._push_user(
            job,
            user,
            messages.expired_push(language, job.duration, job.due),
            {"notification_type": NotificationType.JOB_EXPIRED.value},
        )

    def expire_overdue_jobs(self) -> dict:
        """Time out pending bookings nobody accepted before will_expire_at"""
        now = self.clock()
        summary = {"expired": 0}

        for job in self.repo.get_expired_pending_jobs(self.db, now):
            if not self.repo.expire_pending_job(self.db, job.id, now):
                logger.info(f"ℹ️ Job {job.id} left pending before the sweep reached it")
                continue
            self.db.expire(job, ["status"])
            self.send_expired_notification(job, job.user)
            summary["expired"] += 1
            logger.info(f"⏰ Job {job.id} transitioned: pending → timedout")

        if summary["expired"]:
            self._commit()
        return summary

    # ------------------------------------------------------------------
    # Accept
    # ------------------------------------------------------------------

    def _claim(self, job: Job, translator: User) -> Optional[str]:
        """
        Try to take the job for the translator.

        Returns None on success, or which check failed: "booked" or "taken".
        """
        if self.repo.is_translator_already_booked(
            self.db, translator.id, job.due, job.duration, exclude_job_id=job.id
        ):
            return "booked"

        if not self.repo.claim_pending_job(self.db, job.id):
            self._rollback()
            return "taken"

        self.repo.add_assignment(self.db, job.id, translator.id, self.clock())
        self.db.expire(job, ["status"])

        self._email_requester(
            job,
            messages.subject_job_accepted(job.id),
            "job-accepted",
            self._email_payload(job, translator),
        )
        self._push_user(
            job,
            job.user,
            messages.job_accepted_push(),
            {"notification_type": NotificationType.JOB_ACCEPTED.value},
        )
        self._commit()

        logger.info(f"✅ Job {job.id} accepted by translator {translator.id}")
        return None

    def accept_job(self, data: dict, user: User) -> dict:
        if user.role != Role.TRANSLATOR:
            return authorization_fail(messages.ONLY_TRANSLATORS_ACCEPT)

        job = self._get_job(data.get("job_id"))
        outcome = self._claim(job, user)
        if outcome == "booked":
            return conflict_fail(messages.ALREADY_BOOKED_AT_TIME)
        if outcome == "taken":
            return conflict_fail(messages.ALREADY_ACCEPTED_BY_OTHER)

        return success(job=serialize_job(job), jobs=self.get_potential_jobs(user))

    def accept_job_with_id(self, job_id, user: User) -> dict:
        if user.role != Role.TRANSLATOR:
            return authorization_fail(messages.ONLY_TRANSLATORS_ACCEPT)

        job = self._get_job(job_id)
        outcome = self._claim(job, user)
        if outcome == "booked":
            return conflict_fail(messages.acceptance_failed(messages.ALREADY_BOOKED_SHORT, job.duration, job.due))
        if outcome == "taken":
            self.db.refresh(job)
            return conflict_fail(
                messages.acceptance_failed(messages.ALREADY_ACCEPTED_BY_OTHER, job.duration, job.due)
            )

        language = self._language(job.from_language_id)
        return success(
            job=serialize_job(job),
            message=messages.accepted_with_id_message(language, job.duration, job.due),
        )

    # ------------------------------------------------------------------
    # Cancel / end
    # ------------------------------------------------------------------

    def cancel_job(self, data: dict, user: User) -> dict:
        job = self._get_job(data.get("job_id"), lock=True)
        now = self.clock()
        translator = self._current_translator(job)
        language = self._language(job.from_language_id)

        if user.role == Role.CUSTOMER:
            job.withdraw_at = now
            if job.due - now >= timedelta(hours=24):
                job.status = JobStatus.WITHDRAW_BEFORE_24.value
            else:
                job.status = JobStatus.WITHDRAW_AFTER_24.value
                self._push_user(
                    job,
                    translator,
                    messages.customer_cancelled_push(language, job.duration, job.due),
                    {"notification_type": NotificationType.JOB_CANCELLED.value},
                )

            self._events.append(JobCanceled(job_id=job.id, status=job.status, canceled_by=user.id))
            self._commit()
            logger.info(f"🚫 Job {job.id} withdrawn by customer {user.id}: {job.status}")
            return success(jobstatus="success")

        if job.due - now <= timedelta(hours=24):
            self._rollback()
            return conflict_fail(messages.phone_cancellation_message(self.settings.cancellation_phone))

        self._push_user(
            job,
            job.user,
            messages.translator_cancelled_push(language, job.duration, job.due),
            {"notification_type": NotificationType.JOB_CANCELLED.value},
        )
        job.status = JobStatus.PENDING.value
        job.created_at = now
        job.will_expire_at = will_expire_at(job.due, now)
        if translator:
            self.repo.delete_assignment(self.db, job.id, translator.id)
        self.db.flush()

        self._queue_suitable_translators(job, exclude_user_id=translator.id if translator else None)
        self._commit()

        logger.info(f"🔁 Job {job.id} released by {user.id} and offered again")
        return success()

    def end_job(self, data: dict) -> dict:
        """Close a started session and record its length"""
        job = self._get_job(data.get("job_id"), lock=True)
        if job.status != JobStatus.STARTED.value:
            self._rollback()
            return success()

        actor_id = data.get("user_id")
        actor_id = int(actor_id) if actor_id not in (None, "") else None
        now = self.clock()
        session_time = datetime_helper.format_session_time(job.due, now)

        job.end_at = now
        job.status = JobStatus.COMPLETED.value
        job.session_time = session_time

        assignment = self.repo.get_current_assignment(self.db, job.id)
        translator = assignment.user if assignment else None
        readable = datetime_helper.humanize_session_time(session_time)
        subject = messages.subject_session_ended(job.id)

        customer_payload = self._email_payload(job, translator, session_time=readable, for_text="faktura")
        translator_payload = self._email_payload(job, translator, session_time=readable, for_text="lön")
        self._email_requester(job, subject, "session-ended", customer_payload)
        self._email_user(job, translator, subject, "session-ended", translator_payload)

        if assignment:
            assignment.completed_at = now
            assignment.completed_by = actor_id

        target = (assignment.user_id if assignment else None) if actor_id == job.user_id else job.user_id
        self._events.append(
            SessionEnded(job_id=job.id, session_time=session_time, ended_by=actor_id, target_user_id=target)
        )
        self._commit()

        logger.info(f"🏁 Job {job.id} completed after {session_time}")
        return success()

    job_end = end_job

    def customer_not_call(self, data: dict) -> dict:
        """Translator reports that the customer never showed up"""
        job = self._get_job(data.get("job_id"), lock=True)
        now = self.clock()

        job.end_at = now
        job.status = JobStatus.NOT_CARRIED_OUT_CUSTOMER.value

        assignment = self.repo.get_current_assignment(self.db, job.id)
        if assignment:
            assignment.completed_at = now
            assignment.completed_by = assignment.user_id

        self._commit()
        logger.info(f"📵 Job {job.id} marked as not carried out by customer")
        return success()

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def _resolve_translator(self, data: dict) -> Optional[User]:
        """translator_email wins over translator id; blank email and id 0 mean none"""
        email = (data.get("translator_email") or "").strip()
        if email:
            translator = self.repo.get_user_by_email(self.db, email)
            if not translator:
                raise UserNotFoundError(email)
            return translator

        translator_id = data.get("translator")
        if translator_id in (None, "", 0, "0"):
            return None
        return self._get_user(translator_id)

    def _queue_status_effects(self, job: Job, effects: tuple, ctx: TransitionContext) -> None:
        translator = self._current_translator(job)
        language = self._language(job.from_language_id)

        for effect in effects:
            if effect == Effect.EMAIL_REOPENED:
                self._email_requester(
                    job,
                    messages.subject_job_reopened(language, job.id),
                    "job-change-status-to-customer",
                    self._email_payload(job),
                )
            elif effect == Effect.BROADCAST:
                self._queue_suitable_translators(job)
            elif effect == Effect.EMAIL_TRANSLATOR_ACCEPTED:
                self._email_requester(
                    job, messages.subject_job_accepted(job.id), "job-accepted", self._email_payload(job, translator)
                )
            elif effect == Effect.EMAIL_SESSION_ENDED:
                readable = datetime_helper.humanize_session_time(ctx.session_time)
                subject = messages.subject_session_completed(job.id)
                self._email_requester(
                    job,
                    subject,
                    "session-ended",
                    self._email_payload(job, translator, session_time=readable, for_text="faktura"),
                )
                self._email_user(
                    job,
                    translator,
                    subject,
                    "session-ended",
                    self._email_payload(job, translator, session_time=readable, for_text="lön"),
                )
            elif effect == Effect.EMAIL_ACCEPTED:
                subject = messages.subject_job_accepted(job.id)
                payload = self._email_payload(job, translator)
                self._email_requester(job, subject, "job-accepted", payload)
                self._email_user(job, translator, subject, "job-changed-translator-new-translator", payload)
            elif effect == Effect.PUSH_SESSION_REMINDERS:
                contents = messages.session_reminder_push(
                    language, job.duration, job.due, job.customer_physical_type == "yes"
                )
                data = {"notification_type": NotificationType.SESSION_START_REMIND.value}
                self._push_user(job, job.user, contents, data)
                self._push_user(job, translator, contents, data)
            elif effect == Effect.EMAIL_BOOKING_CANCELLED:
                self._email_requester(
                    job,
                    messages.subject_booking_cancelled(job.id),
                    "status-changed-from-pending-or-assigned-customer",
                    self._email_payload(job),
                )
            elif effect == Effect.EMAIL_WITHDRAWN:
                subject = messages.subject_withdrawn(job.id)
                payload = self._email_payload(job, translator)
                self._email_requester(job, subject, "status-changed-from-pending-or-assigned-customer", payload)
                self._email_user(job, translator, subject, "job-cancel-translator", payload)

    def update_job(self, job_id, data: dict, admin: User) -> dict:
        """
        Admin edit of a booking.

        Translator, due time, language and status are each compared with the
        stored values. Every detected change is written to the admin log.
        Status changes go through the transition table and always notify;
        date, translator and language notices only go out while the booking
        is still in the future.
        """
        new_due = None
        if not is_blank(data.get("due")):
            try:
                new_due = _parse_datetime(data["due"])
            except ValueError:
                return validation_fail(messages.REQUIRED_FIELD, "due")

        job = self._get_job(job_id, lock=True)
        now = self.clock()
        log_data = []

        new_translator = self._resolve_translator(data)
        current = self.repo.get_current_or_completed_assignment(self.db, job.id)
        old_translator = current.user if current else None

        translator_changed = False
        if new_translator and (current is None or current.user_id != new_translator.id):
            if current is not None:
                current.cancel_at = now
            self.repo.add_assignment(self.db, job.id, new_translator.id, now)
            log_data.append(
                {
                    "old_translator": old_translator.email if old_translator else None,
                    "new_translator": new_translator.email,
                }
            )
            translator_changed = True

        old_due = job.due
        due_changed = False
        if new_due is not None and new_due != job.due:
            log_data.append(
                {"old_due": datetime_helper.format_due(old_due), "new_due": datetime_helper.format_due(new_due)}
            )
            job.due = new_due
            due_changed = True

        old_lang_id = job.from_language_id
        lang_changed = False
        if not is_blank(data.get("from_language_id")) and int(data["from_language_id"]) != job.from_language_id:
            job.from_language_id = int(data["from_language_id"])
            log_data.append(
                {"old_lang": self._language(old_lang_id), "new_lang": self._language(job.from_language_id)}
            )
            lang_changed = True

        self.db.flush()

        ctx = TransitionContext(
            now=now,
            due=job.due,
            translator_changed=translator_changed,
            due_changed=due_changed,
            lang_changed=lang_changed,
            admin_comments=data.get("admin_comments"),
            session_time=data.get("session_time"),
        )
        requested = data.get("status") or job.status
        old_status = job.status
        result = transition(old_status, requested, ctx)
        status_applied = isinstance(result, Applied) and not result.is_noop

        if status_applied:
            self.repo.apply_updates(job, result.updates)
            log_data.append({"old_status": old_status, "new_status": requested})
            self.db.flush()
            self._queue_status_effects(job, result.effects, ctx)
        elif not isinstance(result, Applied):
            logger.info(f"ℹ️ Status change {old_status} → {requested} on job {job.id} ignored: {result.reason}")

        if "admin_comments" in data:
            job.admin_comments = data.get("admin_comments")
        if "reference" in data:
            job.reference = data.get("reference")

        booking_logger(admin_logger, job_id=job.id, actor_id=admin.id).info(
            f"USER #{admin.id}({admin.name}) updated booking #{job.id} with data: {log_data}"
        )

        if job.due > now:
            translator = self._current_translator(job)
            if due_changed:
                subject = messages.subject_job_changed(job.id)
                payload = self._email_payload(job, translator, old_due=datetime_helper.format_due(old_due))
                self._email_requester(job, subject, "job-changed-date", payload)
                self._email_user(job, translator, subject, "job-changed-date", payload)
            if translator_changed:
                subject = messages.subject_translator_changed(job.id)
                payload = self._email_payload(job, new_translator)
                self._email_requester(job, subject, "job-changed-translator-customer", payload)
                if old_translator:
                    self._email_user(job, old_translator, subject, "job-changed-translator-old-translator", payload)
                self._email_user(job, new_translator, subject, "job-changed-translator-new-translator", payload)
            if lang_changed:
                subject = messages.subject_job_changed(job.id)
                payload = self._email_payload(job, translator, old_language=self._language(old_lang_id))
                self._email_requester(job, subject, "job-changed-lang", payload)
                self._email_user(job, translator, subject, "job-changed-lang", payload)

        self._commit()
        return success(message="Updated", status_applied=status_applied, changes=log_data)

    def reopen(self, data: dict, admin: Optional[User] = None) -> dict:
        """
        Put a booking back on the market.

        Timed-out bookings are copied into a fresh pending booking; anything
        else is reset to pending in place. Active assignments are cancelled.
        """
        job = self._get_job(data.get("job_id") or data.get("jobid"), lock=True)
        now = self.clock()

        if job.status != JobStatus.TIMEDOUT.value:
            job.status = JobStatus.PENDING.value
            job.created_at = now
            job.will_expire_at = will_expire_at(job.due, now)
            job.emailsent = 0
            job.emailsenttovirpal = 0
            target = job
        else:
            target = self.repo.create_job(
                self.db,
                user_id=job.user_id,
                from_language_id=job.from_language_id,
                immediate=job.immediate,
                gender=job.gender,
                certified=job.certified,
                job_type=job.job_type,
                customer_phone_type=job.customer_phone_type,
                customer_physical_type=job.customer_physical_type,
                due=job.due,
                duration=job.duration,
                town=job.town,
                address=job.address,
                instructions=job.instructions,
                user_email=job.user_email,
                reference=job.reference,
                b_created_at=now,
                created_at=now,
                will_expire_at=will_expire_at(job.due, now),
                status=JobStatus.PENDING.value,
                admin_comments=messages.reopening_comment(job.id),
            )

        self.repo.cancel_active_assignments(self.db, job.id, now)
        self.db.flush()
        self._queue_suitable_translators(target)
        self._commit()

        actor = f"admin {admin.id}" if admin else "system"
        booking_logger(admin_logger, job_id=job.id, actor_id=admin.id if admin else None).info(
            f"🔓 Booking #{job.id} reopened by {actor} as #{target.id}"
        )
        return success(message="Tolk cancelled!", job_id=target.id)

    def distance_feed(self, data: dict) -> dict:
        """Record travel distance and admin bookkeeping fields"""
        job = self._get_job(data.get("jobid") or data.get("job_id"), lock=True)

        admin_comment = data.get("admincomment") or ""
        touches_job = any(
            not is_blank(data.get(key))
            for key in ("admincomment", "session_time", "flagged", "manually_handled", "by_admin")
        )
        flagged = yes_no(data.get("flagged"))
        if touches_job and flagged == "yes" and is_blank(admin_comment):
            self._rollback()
            return validation_fail(messages.ADD_COMMENT, "admincomment")

        if not is_blank(data.get("distance")) or not is_blank(data.get("time")):
            self.repo.upsert_distance(self.db, job.id, data.get("distance") or "", data.get("time") or "")

        if touches_job:
            job.admin_comments = admin_comment
            job.session_time = data.get("session_time") or ""
            job.flagged = flagged
            job.manually_handled = yes_no(data.get("manually_handled"))
            job.by_admin = yes_no(data.get("by_admin"))

        self._commit()
        return success(message=messages.RECORD_UPDATED)
