"""
OneSignal Push Service
Builds push payloads addressed by user email tags and posts them to the gateway
"""

import json
import logging
from typing import Optional

import httpx

from ..config import CHANNEL_TIMEOUT, ONESIGNAL_API_URL
from ..enums import NotificationType

logger = logging.getLogger(__name__)

PUSH_TITLE = {"en": "DigitalTolk"}


class PushNotConfiguredError(Exception):
    pass


def build_user_tags(emails: list[str]) -> list[dict]:
    """email = a OR email = b ..."""
    tags: list[dict] = []
    for index, email in enumerate(emails):
        if index:
            tags.append({"operator": "OR"})
        tags.append({"key": "email", "relation": "=", "value": email.lower()})
    return tags


def build_push_fields(
    app_id: Optional[str],
    emails: list[str],
    data: dict,
    contents: dict,
    send_after: Optional[str] = None,
) -> dict:
    """OneSignal notification body; booking offers get the softer sound unless urgent"""
    normal_booking = (
        data.get("notification_type") == NotificationType.SUITABLE_JOB.value and data.get("immediate") == "no"
    )

    fields = {
        "app_id": app_id,
        "tags": build_user_tags(emails),
        "data": data,
        "title": PUSH_TITLE,
        "contents": contents,
        "ios_badgeType": "Increase",
        "ios_badgeCount": 1,
        "android_sound": "normal_booking" if normal_booking else "default",
        "ios_sound": "normal_booking.mp3" if normal_booking else "emergency_booking.mp3",
    }
    if send_after:
        fields["send_after"] = send_after
    return fields


def send_push(fields: dict, api_key: Optional[str]) -> dict:
    """
    POST a notification to OneSignal

    Raises:
        PushNotConfiguredError: If the app id or REST key is missing
        httpx.HTTPStatusError: If the gateway rejects the request
    """
    if not api_key or not fields.get("app_id"):
        raise PushNotConfiguredError("OneSignal app id / REST key not configured")

    logger.info(f"🔔 Sending push to {len(fields.get('tags', []))} tag filters")
    with httpx.Client(timeout=CHANNEL_TIMEOUT) as client:
        response = client.post(
            ONESIGNAL_API_URL,
            content=json.dumps(fields),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Basic {api_key}",
            },
        )
        response.raise_for_status()

    result = response.json()
    logger.info(f"✅ Push accepted by gateway: {result.get('id')}")
    return result
