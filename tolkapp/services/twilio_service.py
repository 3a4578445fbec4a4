"""
Twilio SMS Service
Sends booking SMS to translators through the Twilio REST API
"""

import logging
from typing import Optional

import httpx

from ..config import CHANNEL_TIMEOUT, TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN

logger = logging.getLogger(__name__)


def send_sms(from_phone: Optional[str], to_phone: Optional[str], message_body: str) -> tuple[bool, Optional[str]]:
    """
    Send SMS via Twilio

    Args:
        from_phone: Sender number (E.164)
        to_phone: Recipient phone number (E.164)
        message_body: SMS message content

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    if not to_phone:
        logger.debug("No phone number provided")
        return False, "No phone number provided"

    if not to_phone.startswith("+"):
        logger.warning(f"Phone number not in E.164 format: {to_phone}")
        return False, "Phone number must be in E.164 format (e.g., +46701234567)"

    if not (TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN and from_phone):
        logger.debug("Twilio credentials or sender number missing")
        return False, "SMS not configured"

    try:
        logger.info(f"🚀 Sending SMS to Twilio API for {to_phone}")
        with httpx.Client(timeout=CHANNEL_TIMEOUT) as client:
            response = client.post(
                f"https://api.twilio.com/2010-04-01/Accounts/{TWILIO_ACCOUNT_SID}/Messages.json",
                auth=(TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN),
                data={"From": from_phone, "To": to_phone, "Body": message_body},
            )

        if response.status_code in (200, 201):
            logger.info(f"✅ SMS sent to {to_phone}: {response.json().get('sid')}")
            return True, None

        error_message = response.json().get("message", "Unknown error")
        logger.error(f"❌ Twilio API error ({response.status_code}): {error_message}")
        return False, error_message

    except httpx.HTTPError as e:
        logger.error(f"❌ Failed to send SMS to {to_phone}: {e}")
        return False, str(e)
