from unittest.mock import MagicMock, call

import httpx

from tolkapp.services import push_service
from tolkapp.services.notification_service import (
    NotificationEnvelope,
    NotificationService,
    email_envelope,
    push_envelope,
    sms_envelope,
)


def test_dispatch_sends_in_order_and_isolates_failures():
    channels = MagicMock()
    channels.send_push.side_effect = httpx.ConnectError("gateway down")
    envelopes = [
        email_envelope(1, "kund@example.com", "Kund", "Ämne", "job-accepted", {"job_id": 1}),
        push_envelope(1, ["tolk@example.com"], {"sv": "Hej"}, {"notification_type": "job_accepted"}),
        sms_envelope(1, "+46701234567", "Ny bokning", "+46700000000"),
    ]

    summary = NotificationService(channels).dispatch(envelopes)

    assert summary["sent"] == 2
    assert summary["failed"] == 1
    assert "gateway down" in summary["errors"][0]
    channels.send_email.assert_called_once_with("kund@example.com", "Kund", "Ämne", "job-accepted", {"job_id": 1})
    channels.send_sms.assert_called_once_with("+46700000000", "+46701234567", "Ny bokning")
    assert channels.method_calls[0] == call.send_email("kund@example.com", "Kund", "Ämne", "job-accepted", {"job_id": 1})


def test_sms_envelope_without_number_sends_nothing():
    channels = MagicMock()

    summary = NotificationService(channels).dispatch([sms_envelope(1, None, "x", "+46700000000")])

    assert summary["sent"] == 1
    channels.send_sms.assert_not_called()


def test_envelope_survives_worker_serialization():
    envelope = push_envelope(7, ["a@example.com"], {"sv": "Hej"}, {"job_id": 7}, "2026-10-20T08:00:00+02:00")
    assert NotificationEnvelope.from_dict(envelope.to_dict()) == envelope


def test_push_fields_target_users_by_email_tag():
    fields = push_service.build_push_fields(
        "app-id",
        ["A@example.com", "b@example.com"],
        {"notification_type": "suitable_job", "immediate": "no"},
        {"sv": "Ny bokning", "en": "New booking"},
        send_after="2026-10-20T08:00:00+02:00",
    )

    assert fields["tags"] == [
        {"key": "email", "relation": "=", "value": "a@example.com"},
        {"operator": "OR"},
        {"key": "email", "relation": "=", "value": "b@example.com"},
    ]
    assert fields["android_sound"] == "normal_booking"
    assert fields["ios_sound"] == "normal_booking.mp3"
    assert fields["send_after"] == "2026-10-20T08:00:00+02:00"


def test_emergency_pushes_use_default_sound():
    fields = push_service.build_push_fields(
        "app-id", ["a@example.com"], {"notification_type": "suitable_job", "immediate": "yes"}, {"sv": "Akut"}
    )

    assert fields["android_sound"] == "default"
    assert fields["ios_sound"] == "emergency_booking.mp3"
    assert "send_after" not in fields
