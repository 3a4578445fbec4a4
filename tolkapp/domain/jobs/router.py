"""Job router - FastAPI endpoints for the booking lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_user
from ...config import get_settings
from ...database import get_db
from ...models import User
from ...services.notification_service import NotificationService
from ...worker import enqueue_notifications
from .reporting import ReportingService
from .schemas import DistanceFeed, JobAction, JobCreate, JobEmailUpdate, JobFilters, JobUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

_FAIL_STATUS = {"validation": 422, "authorization": 403, "conflict": 409}


def get_notification_service() -> NotificationService:
    return NotificationService()


def get_booking_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
) -> BookingService:
    """Dependency injection for BookingService; notifications go out after the response"""
    settings = get_settings()

    def dispatch(envelopes):
        if settings.notification_queue == "arq":
            background_tasks.add_task(enqueue_notifications, envelopes)
        else:
            background_tasks.add_task(notifier.dispatch, envelopes)

    return BookingService(db, settings=settings, dispatch=dispatch)


def get_reporting_service(db: Session = Depends(get_db)) -> ReportingService:
    return ReportingService(db)


def respond(result: dict):
    """Fail results keep their body but get a matching HTTP status"""
    if result.get("status") == "fail":
        return JSONResponse(status_code=_FAIL_STATUS.get(result.get("error_type"), 400), content=result)
    return result


# ============================================================================
# CUSTOMER / TRANSLATOR
# ============================================================================


@router.get("")
async def get_users_jobs(
    user_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Current bookings for the caller (admins may ask for any user)"""
    if user_id and user_id != current_user.id and not current_user.role.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to view other users' bookings")
    return service.get_users_jobs(user_id or current_user.id)


@router.get("/history")
async def get_history(
    page: int = Query(1, ge=1),
    user_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    if user_id and user_id != current_user.id and not current_user.role.is_admin:
        raise HTTPException(status_code=403, detail="Not allowed to view other users' bookings")
    return service.get_users_jobs_history(user_id or current_user.id, page)


@router.get("/potential")
async def get_potential_jobs(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_potential_jobs(current_user)


@router.post("")
async def create_job(
    data: JobCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.store(current_user, data.model_dump()))


@router.post("/email")
async def store_job_email(
    data: JobEmailUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.store_job_email(data.model_dump(exclude_unset=True)))


@router.post("/accept")
async def accept_job(
    data: JobAction,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.accept_job(data.model_dump(), current_user))


@router.post("/cancel")
async def cancel_job(
    data: JobAction,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.cancel_job(data.model_dump(), current_user))


@router.post("/end")
async def end_job(
    data: JobAction,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.end_job({"job_id": data.job_id, "user_id": current_user.id}))


@router.post("/customer-not-call")
async def customer_not_call(
    data: JobAction,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.customer_not_call(data.model_dump()))


# ============================================================================
# ADMIN
# ============================================================================


@router.post("/reports/list")
async def list_jobs(
    filters: JobFilters,
    page: int = Query(1, ge=1),
    admin: User = Depends(get_current_admin),
    reporting: ReportingService = Depends(get_reporting_service),
):
    return reporting.list_jobs(filters.to_filters(), page)


@router.post("/reports/alerts")
async def alerts(
    filters: JobFilters,
    page: int = Query(1, ge=1),
    admin: User = Depends(get_current_admin),
    reporting: ReportingService = Depends(get_reporting_service),
):
    return reporting.alerts(filters.to_filters(), page)


@router.post("/reports/expired-unaccepted")
async def booking_expire_no_accepted(
    filters: JobFilters,
    page: int = Query(1, ge=1),
    admin: User = Depends(get_current_admin),
    reporting: ReportingService = Depends(get_reporting_service),
):
    return reporting.booking_expire_no_accepted(filters.to_filters(), page)


@router.post("/distance-feed")
async def distance_feed(
    data: DistanceFeed,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.distance_feed(data.model_dump()))


@router.post("/reopen")
async def reopen(
    data: JobAction,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.reopen(data.model_dump(), admin))


# ============================================================================
# SINGLE JOB
# ============================================================================


@router.get("/{job_id}")
async def get_job(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return service.get_job(job_id)


@router.put("/{job_id}")
async def update_job(
    job_id: int,
    data: JobUpdate,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.update_job(job_id, data.model_dump(exclude_unset=True), admin))


@router.post("/{job_id}/accept")
async def accept_job_with_id(
    job_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    return respond(service.accept_job_with_id(job_id, current_user))


@router.post("/{job_id}/resend-push")
async def resend_notifications(
    job_id: int,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    service.send_notification_by_admin_cancel_job(job_id)
    return {"success": "Push sent"}


@router.post("/{job_id}/resend-sms")
async def resend_sms_notifications(
    job_id: int,
    admin: User = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    sent = service.send_sms_notification_to_translator(job_id)
    return {"success": "SMS sent", "count": sent}
