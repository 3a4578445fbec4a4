"""Channel adapter between booking logic and the notification transports"""

import logging
from typing import Optional

from ..config import BookingSettings, get_settings
from ..email_service import send_template_email
from ..shared.validators import validate_e164_phone
from . import push_service, twilio_service

logger = logging.getLogger(__name__)


class SmsDeliveryError(Exception):
    pass


class ChannelAdapter:
    """Stateless transport wrapper; tests replace it with a mock"""

    def __init__(self, settings: Optional[BookingSettings] = None):
        self.settings = settings or get_settings()

    def send_email(self, to: str, name: Optional[str], subject: str, template: str, payload: dict) -> None:
        send_template_email(to=to, name=name, subject=subject, template=template, payload=payload)

    def send_push(self, emails: list[str], data: dict, contents: dict, send_after: Optional[str] = None) -> None:
        if not emails:
            return
        fields = push_service.build_push_fields(self.settings.onesignal_app_id, emails, data, contents, send_after)
        push_service.send_push(fields, self.settings.onesignal_api_key)

    def send_sms(self, from_phone: Optional[str], to_phone: Optional[str], body: str) -> None:
        try:
            to_phone = validate_e164_phone(to_phone)
        except ValueError as e:
            raise SmsDeliveryError(f"Invalid phone number {to_phone}: {e}") from e

        sent, error = twilio_service.send_sms(from_phone, to_phone, body)
        if not sent:
            raise SmsDeliveryError(error or "SMS not sent")
