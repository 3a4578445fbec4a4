"""
Automated status transitions for bookings
Handles pending → timedout once a booking passes its will_expire_at
"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..domain.jobs.service import BookingService

logger = logging.getLogger(__name__)


def expire_pending_jobs(db: Session, dispatch: Optional[Callable] = None, clock: Optional[Callable] = None) -> dict:
    """
    Time out pending bookings nobody accepted in time
    Should be run as a scheduled job (arq cron)

    Returns:
        dict: Summary of status changes made
    """
    summary = {"pending_to_timedout": 0, "total_updated": 0}

    try:
        service = BookingService(db, dispatch=dispatch, clock=clock)
        result = service.expire_overdue_jobs()

        summary["pending_to_timedout"] = result["expired"]
        summary["total_updated"] = result["expired"]
        if summary["total_updated"]:
            logger.info(f"📊 Expiry sweep summary: {summary}")
        else:
            logger.debug("ℹ️ No bookings to time out")

        return summary

    except Exception as e:
        logger.error(f"❌ Error expiring pending bookings: {str(e)}")
        db.rollback()
        raise
