import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

APP_ENV = os.getenv("APP_ENV", "dev")  # dev or prod

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tolkapp.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# OneSignal push gateway (separate apps for prod and dev)
ONESIGNAL_API_URL = os.getenv("ONESIGNAL_API_URL", "https://onesignal.com/api/v1/notifications")
PROD_ONESIGNAL_APP_ID = os.getenv("PROD_ONESIGNAL_APP_ID")
PROD_ONESIGNAL_API_KEY = os.getenv("PROD_ONESIGNAL_API_KEY")
DEV_ONESIGNAL_APP_ID = os.getenv("DEV_ONESIGNAL_APP_ID")
DEV_ONESIGNAL_API_KEY = os.getenv("DEV_ONESIGNAL_API_KEY")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "DigitalTolk <noreply@digitaltolk.se>")

# Twilio SMS Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
SMS_NUMBER = os.getenv("SMS_NUMBER")  # Sender number in E.164 format

# Booking rules
BOOKING_TIMEZONE = os.getenv("BOOKING_TIMEZONE", "Europe/Stockholm")
IMMEDIATE_LEAD_MINUTES = int(os.getenv("IMMEDIATE_LEAD_MINUTES", "5"))
NIGHT_START_HOUR = int(os.getenv("NIGHT_START_HOUR", "22"))
NIGHT_END_HOUR = int(os.getenv("NIGHT_END_HOUR", "7"))
BUSINESS_START_HOUR = int(os.getenv("BUSINESS_START_HOUR", "8"))
CANCELLATION_PHONE = os.getenv("CANCELLATION_PHONE", "+46 73 75 86 865")

# Log directory for admin/push operational logs
LOG_DIR = os.getenv("LOG_DIR", "logs")

# Where post-commit notifications go: "inline" (request background task) or "arq"
NOTIFICATION_QUEUE = os.getenv("NOTIFICATION_QUEUE", "inline")

# Channel call bound (seconds)
CHANNEL_TIMEOUT = float(os.getenv("CHANNEL_TIMEOUT", "10.0"))


@dataclass(frozen=True)
class BookingSettings:
    """Immutable booking configuration injected into the lifecycle services"""

    app_env: str = APP_ENV
    timezone: str = BOOKING_TIMEZONE
    immediate_lead_minutes: int = IMMEDIATE_LEAD_MINUTES
    night_start_hour: int = NIGHT_START_HOUR
    night_end_hour: int = NIGHT_END_HOUR
    business_start_hour: int = BUSINESS_START_HOUR
    cancellation_phone: str = CANCELLATION_PHONE
    sms_number: str | None = SMS_NUMBER
    page_size: int = 15
    notification_queue: str = NOTIFICATION_QUEUE

    @property
    def onesignal_app_id(self) -> str | None:
        return PROD_ONESIGNAL_APP_ID if self.app_env == "prod" else DEV_ONESIGNAL_APP_ID

    @property
    def onesignal_api_key(self) -> str | None:
        return PROD_ONESIGNAL_API_KEY if self.app_env == "prod" else DEV_ONESIGNAL_API_KEY


def get_settings() -> BookingSettings:
    return BookingSettings()
