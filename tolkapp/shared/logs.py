"""
Process-wide logging setup
Operational logs for admin edits and push dispatches go to daily files
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

ADMIN_LOGGER_NAME = "tolkapp.admin"
PUSH_LOGGER_NAME = "tolkapp.push"

_configured = False


class BookingLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with job/actor context and passes the fields as extras"""

    def process(self, msg, kwargs):
        context = " ".join(f"{key}={value}" for key, value in self.extra.items() if value is not None)
        extra = dict(kwargs.get("extra") or {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return (f"[{context}] {msg}" if context else msg), kwargs


def booking_logger(
    logger: logging.Logger, job_id: Optional[int] = None, actor_id: Optional[int] = None
) -> BookingLogAdapter:
    return BookingLogAdapter(logger, {"job_id": job_id, "actor_id": actor_id})


def _attach_daily_file(logger_name: str, log_dir: str, subdir: str) -> None:
    target_dir = os.path.join(log_dir, subdir)
    try:
        os.makedirs(target_dir, exist_ok=True)
        handler = TimedRotatingFileHandler(
            os.path.join(target_dir, "tolkapp.log"), when="midnight", backupCount=30, encoding="utf-8"
        )
    except OSError as e:
        logging.getLogger(__name__).warning(f"⚠️ Could not open {subdir} log file in {target_dir}: {e}")
        return

    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    logging.getLogger(logger_name).addHandler(handler)


def configure_logging(log_dir: str, level: int = logging.INFO) -> None:
    """Initialize logging once at startup"""
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Reduce verbosity of third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _attach_daily_file(ADMIN_LOGGER_NAME, log_dir, "admin")
    _attach_daily_file(PUSH_LOGGER_NAME, log_dir, "push")
    _configured = True
