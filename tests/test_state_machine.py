from datetime import datetime, timedelta

from tolkapp.domain.jobs.state_machine import Applied, Effect, Rejected, TransitionContext, transition

NOW = datetime(2026, 10, 19, 10, 0)
DUE = NOW + timedelta(days=4)


def ctx(**overrides) -> TransitionContext:
    return TransitionContext(now=NOW, due=DUE, **overrides)


def test_same_status_is_a_noop():
    result = transition("assigned", "assigned", ctx())
    assert isinstance(result, Applied)
    assert result.is_noop


def test_unknown_status_is_rejected():
    assert isinstance(transition("pending", "archived", ctx()), Rejected)


def test_pending_to_assigned_needs_a_translator():
    assert isinstance(transition("pending", "assigned", ctx()), Rejected)

    result = transition("pending", "assigned", ctx(translator_changed=True))
    assert result.updates == {"status": "assigned"}
    assert result.effects == (Effect.EMAIL_ACCEPTED, Effect.PUSH_SESSION_REMINDERS)


def test_pending_to_timedout_needs_a_comment():
    assert isinstance(transition("pending", "timedout", ctx()), Rejected)

    result = transition("pending", "timedout", ctx(admin_comments="Kunden ringde"))
    assert result.updates == {"status": "timedout", "admin_comments": "Kunden ringde"}
    assert result.effects == (Effect.EMAIL_BOOKING_CANCELLED,)


def test_pending_withdraw_notifies_customer():
    result = transition("pending", "withdrawbefore24", ctx())
    assert result.updates == {"status": "withdrawbefore24"}
    assert result.effects == (Effect.EMAIL_BOOKING_CANCELLED,)


def test_pending_to_any_other_status_notifies_customer():
    result = transition("pending", "completed", ctx(admin_comments="Utförd via telefon"))
    assert result.updates == {"status": "completed", "admin_comments": "Utförd via telefon"}
    assert result.effects == (Effect.EMAIL_BOOKING_CANCELLED,)

    result = transition("pending", "started", ctx())
    assert result.updates == {"status": "started"}
    assert result.effects == (Effect.EMAIL_BOOKING_CANCELLED,)


def test_timedout_to_pending_reopens_and_broadcasts():
    result = transition("timedout", "pending", ctx())
    assert result.updates["status"] == "pending"
    assert result.updates["created_at"] == NOW
    assert result.updates["emailsent"] == 0
    assert result.updates["emailsenttovirpal"] == 0
    assert result.updates["will_expire_at"] == DUE - timedelta(hours=48)
    assert result.effects == (Effect.EMAIL_REOPENED, Effect.BROADCAST)


def test_timedout_to_other_status_needs_translator_change():
    assert isinstance(transition("timedout", "assigned", ctx()), Rejected)

    result = transition("timedout", "assigned", ctx(translator_changed=True))
    assert result.effects == (Effect.EMAIL_TRANSLATOR_ACCEPTED,)


def test_started_to_completed_requires_comment_and_session_time():
    assert isinstance(transition("started", "completed", ctx(admin_comments="ok")), Rejected)
    assert isinstance(transition("started", "completed", ctx(session_time="01:00:00")), Rejected)
    assert isinstance(transition("started", "pending", ctx(admin_comments="ok", session_time="01:00:00")), Rejected)

    result = transition("started", "completed", ctx(admin_comments="ok", session_time="01:00:00"))
    assert result.updates == {
        "status": "completed",
        "admin_comments": "ok",
        "end_at": NOW,
        "session_time": "01:00:00",
    }
    assert result.effects == (Effect.EMAIL_SESSION_ENDED,)


def test_completed_only_times_out_with_comment():
    assert isinstance(transition("completed", "timedout", ctx()), Rejected)

    result = transition("completed", "timedout", ctx(admin_comments="Felbokning"))
    assert result.updates == {"status": "timedout", "admin_comments": "Felbokning"}
    assert result.effects == ()


def test_withdrawafter24_only_times_out_with_comment():
    assert isinstance(transition("withdrawafter24", "pending", ctx(admin_comments="x")), Rejected)
    assert isinstance(transition("withdrawafter24", "timedout", ctx(admin_comments="x")), Applied)


def test_assigned_withdraw_emails_both_parties():
    result = transition("assigned", "withdrawafter24", ctx())
    assert result.effects == (Effect.EMAIL_WITHDRAWN,)

    silent = transition("assigned", "timedout", ctx(admin_comments="Dubblett"))
    assert silent.effects == ()
    assert silent.updates["admin_comments"] == "Dubblett"


def test_final_statuses_reject_changes():
    assert isinstance(transition("withdrawbefore24", "pending", ctx()), Rejected)
    assert isinstance(transition("not_carried_out_customer", "pending", ctx()), Rejected)
