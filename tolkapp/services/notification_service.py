"""
Unified Notification Service
Booking operations describe their notifications as envelopes; this module
delivers them channel by channel once the booking change is committed.
A failing channel is logged and never rolls back or blocks the others.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Optional

from ..enums import Channel
from ..shared.logs import PUSH_LOGGER_NAME, booking_logger
from .channels import ChannelAdapter

logger = logging.getLogger(__name__)
push_logger = logging.getLogger(PUSH_LOGGER_NAME)


@dataclass
class NotificationEnvelope:
    """One outgoing message. Never persisted, only logged."""

    channel: str
    recipients: list[str]
    job_id: Optional[int] = None
    recipient_name: Optional[str] = None
    # email
    subject: Optional[str] = None
    template: Optional[str] = None
    payload: dict = field(default_factory=dict)
    # push
    contents: dict = field(default_factory=dict)
    data: dict = field(default_factory=dict)
    send_after: Optional[str] = None
    # sms
    body: Optional[str] = None
    sender: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> "NotificationEnvelope":
        return cls(**raw)


def email_envelope(
    job_id: int, to: str, name: Optional[str], subject: str, template: str, payload: dict
) -> NotificationEnvelope:
    return NotificationEnvelope(
        channel=Channel.EMAIL.value,
        recipients=[to],
        job_id=job_id,
        recipient_name=name,
        subject=subject,
        template=template,
        payload=payload,
    )


def push_envelope(
    job_id: int, emails: list[str], contents: dict, data: dict, send_after: Optional[str] = None
) -> NotificationEnvelope:
    return NotificationEnvelope(
        channel=Channel.PUSH.value,
        recipients=list(emails),
        job_id=job_id,
        contents=contents,
        data=data,
        send_after=send_after,
    )


def sms_envelope(job_id: int, to: Optional[str], body: str, sender: Optional[str]) -> NotificationEnvelope:
    return NotificationEnvelope(
        channel=Channel.SMS.value,
        recipients=[to] if to else [],
        job_id=job_id,
        body=body,
        sender=sender,
    )


class NotificationService:
    """Delivers envelopes in order through a channel adapter"""

    def __init__(self, channels: Optional[ChannelAdapter] = None):
        self.channels = channels or ChannelAdapter()

    def _deliver(self, envelope: NotificationEnvelope) -> None:
        if envelope.channel == Channel.EMAIL.value:
            for to in envelope.recipients:
                self.channels.send_email(
                    to, envelope.recipient_name, envelope.subject, envelope.template, envelope.payload
                )
        elif envelope.channel == Channel.PUSH.value:
            booking_logger(push_logger, job_id=envelope.job_id).info(
                f"Push send for job {envelope.job_id}: recipients={envelope.recipients} "
                f"contents={envelope.contents} data={envelope.data} send_after={envelope.send_after}"
            )
            self.channels.send_push(envelope.recipients, envelope.data, envelope.contents, envelope.send_after)
        elif envelope.channel == Channel.SMS.value:
            for to in envelope.recipients:
                self.channels.send_sms(envelope.sender, to, envelope.body)
        else:
            raise ValueError(f"Unknown channel {envelope.channel}")

    def dispatch(self, envelopes: list[NotificationEnvelope]) -> dict:
        """
        Send every envelope, isolating failures per envelope

        Returns:
            Dict with sent / failed counts
        """
        summary = {"sent": 0, "failed": 0, "errors": []}

        for envelope in envelopes:
            try:
                self._deliver(envelope)
                summary["sent"] += 1
            except Exception as e:
                summary["failed"] += 1
                summary["errors"].append(f"{envelope.channel} job {envelope.job_id}: {e}")
                logger.error(
                    f"❌ Failed to send {envelope.channel} for job {envelope.job_id} to {envelope.recipients}: {e}"
                )

        if envelopes:
            logger.info(f"📬 Notifications dispatched: {summary['sent']} sent, {summary['failed']} failed")
        return summary
