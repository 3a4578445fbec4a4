"""
Admin status transitions for bookings.

``transition`` only decides: it never touches the job. The caller applies
``Applied.updates`` inside its transaction and turns ``Applied.effects`` into
notifications once the transaction has committed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from ...enums import JobStatus
from .helpers import will_expire_at


class Effect(str, Enum):
    EMAIL_REOPENED = "email_reopened"
    BROADCAST = "broadcast"
    EMAIL_TRANSLATOR_ACCEPTED = "email_translator_accepted"
    EMAIL_SESSION_ENDED = "email_session_ended"
    EMAIL_ACCEPTED = "email_accepted"
    PUSH_SESSION_REMINDERS = "push_session_reminders"
    EMAIL_BOOKING_CANCELLED = "email_booking_cancelled"
    EMAIL_WITHDRAWN = "email_withdrawn"


@dataclass(frozen=True)
class TransitionContext:
    now: datetime
    due: datetime
    translator_changed: bool = False
    due_changed: bool = False
    lang_changed: bool = False
    admin_comments: Optional[str] = None
    session_time: Optional[str] = None

    @property
    def has_comment(self) -> bool:
        return bool(self.admin_comments and self.admin_comments.strip())


@dataclass(frozen=True)
class Applied:
    updates: dict = field(default_factory=dict)
    effects: tuple = ()

    @property
    def is_noop(self) -> bool:
        return not self.updates and not self.effects


@dataclass(frozen=True)
class Rejected:
    reason: str


TransitionResult = Union[Applied, Rejected]

WITHDRAW_TARGETS = (JobStatus.WITHDRAW_BEFORE_24.value, JobStatus.WITHDRAW_AFTER_24.value)
CANCEL_TARGETS = WITHDRAW_TARGETS + (JobStatus.TIMEDOUT.value,)


def _status(requested: str, ctx: TransitionContext, with_comment: bool = False) -> dict:
    updates = {"status": requested}
    if with_comment and ctx.has_comment:
        updates["admin_comments"] = ctx.admin_comments
    return updates


def _from_timedout(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.PENDING.value:
        updates = _status(requested, ctx)
        updates.update(
            created_at=ctx.now,
            emailsent=0,
            emailsenttovirpal=0,
            will_expire_at=will_expire_at(ctx.due, ctx.now),
        )
        return Applied(updates, (Effect.EMAIL_REOPENED, Effect.BROADCAST))

    if ctx.translator_changed:
        return Applied(_status(requested, ctx), (Effect.EMAIL_TRANSLATOR_ACCEPTED,))
    return Rejected("translator not changed")


def _from_completed(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.TIMEDOUT.value and ctx.has_comment:
        return Applied(_status(requested, ctx, with_comment=True))
    return Rejected("completed jobs only time out with an admin comment")


def _from_started(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested != JobStatus.COMPLETED.value:
        return Rejected("started jobs can only be completed")
    if not ctx.has_comment or not ctx.session_time:
        return Rejected("admin comment and session time required")

    updates = _status(requested, ctx, with_comment=True)
    updates.update(end_at=ctx.now, session_time=ctx.session_time)
    return Applied(updates, (Effect.EMAIL_SESSION_ENDED,))


def _from_pending(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.ASSIGNED.value:
        if not ctx.translator_changed:
            return Rejected("no translator assigned")
        return Applied(_status(requested, ctx), (Effect.EMAIL_ACCEPTED, Effect.PUSH_SESSION_REMINDERS))

    if requested == JobStatus.TIMEDOUT.value and not ctx.has_comment:
        return Rejected("admin comment required")
    return Applied(_status(requested, ctx, with_comment=True), (Effect.EMAIL_BOOKING_CANCELLED,))


def _from_withdrawafter24(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested == JobStatus.TIMEDOUT.value and ctx.has_comment:
        return Applied(_status(requested, ctx, with_comment=True))
    return Rejected("admin comment required")


def _from_assigned(requested: str, ctx: TransitionContext) -> TransitionResult:
    if requested not in CANCEL_TARGETS:
        return Rejected(f"assigned cannot move to {requested}")
    if requested == JobStatus.TIMEDOUT.value and not ctx.has_comment:
        return Rejected("admin comment required")

    effects = (Effect.EMAIL_WITHDRAWN,) if requested in WITHDRAW_TARGETS else ()
    return Applied(_status(requested, ctx, with_comment=True), effects)


_HANDLERS = {
    JobStatus.TIMEDOUT.value: _from_timedout,
    JobStatus.COMPLETED.value: _from_completed,
    JobStatus.STARTED.value: _from_started,
    JobStatus.PENDING.value: _from_pending,
    JobStatus.WITHDRAW_AFTER_24.value: _from_withdrawafter24,
    JobStatus.ASSIGNED.value: _from_assigned,
}


def transition(current: str, requested: str, ctx: TransitionContext) -> TransitionResult:
    """Evaluate an admin status change request"""
    if current == requested:
        return Applied()
    if not JobStatus.has_value(requested):
        return Rejected(f"unknown status {requested}")

    handler = _HANDLERS.get(current)
    if handler is None:
        return Rejected(f"{current} is final")
    return handler(requested, ctx)
