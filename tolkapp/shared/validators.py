"""Shared validation utilities"""

import re
from datetime import datetime
from typing import Any, Optional


def is_blank(value: Any) -> bool:
    """None, empty string and whitespace-only strings all mean "not supplied" """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def yes_no(value: Any) -> str:
    """Normalize checkbox-style inputs to 'yes' / 'no'"""
    if isinstance(value, str):
        return "yes" if value.strip().lower() in ("yes", "true", "1", "on") else "no"
    return "yes" if value else "no"


def parse_due(due_date: str, due_time: str) -> datetime:
    """
    Parse the booking form's date and time fields.

    Args:
        due_date: Date in m/d/Y format (e.g., 10/18/2026)
        due_time: Time in H:M format (e.g., 14:30)

    Raises:
        ValueError: If either part is malformed
    """
    return datetime.strptime(f"{due_date.strip()} {due_time.strip()}", "%m/%d/%Y %H:%M")


def validate_e164_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a phone number to E.164 format.

    Swedish local numbers (leading 0) get the +46 prefix.

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    stripped = phone.strip()
    digits = re.sub(r"\D", "", stripped)

    if stripped.startswith("+"):
        normalized = f"+{digits}"
    elif digits.startswith("00"):
        normalized = f"+{digits[2:]}"
    elif digits.startswith("0"):
        normalized = f"+46{digits[1:]}"
    else:
        normalized = f"+{digits}"

    if not 8 <= len(normalized) - 1 <= 15:
        raise ValueError("Phone number must have between 8 and 15 digits")

    return normalized


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email
