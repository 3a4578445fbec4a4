"""Job domain schemas - Pydantic models for request validation"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_email


class JobCreate(BaseModel):
    """Booking form. Required-field checks happen in the service so the
    caller gets the localized field-level message."""

    from_language_id: Optional[int] = None
    immediate: str = "no"
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    duration: Optional[int] = None
    customer_phone_type: Optional[str] = None
    customer_physical_type: Optional[str] = None
    job_for: list[str] = []
    by_admin: Optional[str] = None


class JobEmailUpdate(BaseModel):
    job_id: int
    user_email: Optional[str] = None
    reference: Optional[str] = None
    address: Optional[str] = None
    instructions: Optional[str] = None
    town: Optional[str] = None
    user_type: Optional[str] = None

    @field_validator("user_email")
    @classmethod
    def validate_user_email(cls, v):
        if v:
            return validate_email(v)
        return v


class JobUpdate(BaseModel):
    """Admin edit; unset fields keep their stored values"""

    translator: Optional[int] = None
    translator_email: Optional[str] = None
    due: Optional[str] = None
    from_language_id: Optional[int] = None
    status: Optional[str] = None
    admin_comments: Optional[str] = None
    reference: Optional[str] = None
    session_time: Optional[str] = None


class JobAction(BaseModel):
    job_id: int
    user_id: Optional[int] = None


class DistanceFeed(BaseModel):
    jobid: int
    distance: Optional[str] = None
    time: Optional[str] = None
    admincomment: Optional[str] = None
    session_time: Optional[str] = None
    flagged: Optional[Union[bool, str]] = None
    manually_handled: Optional[Union[bool, str]] = None
    by_admin: Optional[Union[bool, str]] = None


class JobFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[list[int]] = None
    lang: Optional[list[int]] = None
    status: Optional[list[str]] = None
    job_type: Optional[list[str]] = None
    customer_email: Optional[str] = None
    translator_email: Optional[str] = None
    filter_timetype: Optional[str] = None
    # date bounds, Y-m-d
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    ignore: Optional[bool] = None

    def to_filters(self) -> dict:
        filters = self.model_dump(exclude_none=True, exclude={"from_"})
        if self.from_:
            filters["from"] = self.from_
        return filters
