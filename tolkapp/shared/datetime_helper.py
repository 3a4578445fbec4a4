"""
Booking time helpers
Local wall-clock time, night-time detection and session duration formatting
"""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from ..config import BOOKING_TIMEZONE, BUSINESS_START_HOUR, NIGHT_END_HOUR, NIGHT_START_HOUR


def now(tz_name: str = BOOKING_TIMEZONE) -> datetime:
    """Current local time as a naive datetime (jobs store naive local timestamps)"""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def is_night_time(
    moment: datetime,
    night_start_hour: int = NIGHT_START_HOUR,
    night_end_hour: int = NIGHT_END_HOUR,
) -> bool:
    """Night wraps midnight: [night_start_hour, 24) ∪ [0, night_end_hour)"""
    return moment.hour >= night_start_hour or moment.hour < night_end_hour


def next_business_time(moment: datetime, business_start_hour: int = BUSINESS_START_HOUR) -> datetime:
    """First business-day start strictly after ``moment``"""
    candidate = moment.replace(hour=business_start_hour, minute=0, second=0, microsecond=0)
    if candidate <= moment:
        candidate += timedelta(days=1)
    return candidate


def send_after_string(
    moment: datetime, business_start_hour: int = BUSINESS_START_HOUR, tz_name: str = BOOKING_TIMEZONE
) -> str:
    """Next business-hour boundary as an offset-aware timestamp for the push gateway"""
    return next_business_time(moment, business_start_hour).replace(tzinfo=ZoneInfo(tz_name)).isoformat()


def format_session_time(start: datetime, end: datetime) -> str:
    """Wall-clock difference as H:MM:SS; hours are not clamped to a day"""
    total_seconds = int(abs((end - start).total_seconds()))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def humanize_session_time(session_time: str, hours_label: str = "tim", minutes_label: str = "min") -> str:
    """'02:05:00' -> '02 tim 05 min'"""
    parts = session_time.split(":")
    return f"{parts[0]} {hours_label} {parts[1]} {minutes_label}"


def convert_to_hours_mins(minutes: int) -> str:
    """90 -> '01h 30min'; under an hour stays in minutes"""
    minutes = int(minutes or 0)
    if minutes < 60:
        return f"{minutes}min"
    if minutes == 60:
        return "1h"
    hours, rest = divmod(minutes, 60)
    return f"{hours:02d}h {rest:02d}min"


def format_due(due: datetime) -> str:
    return due.strftime("%Y-%m-%d %H:%M:%S")


