"""Appointment domain schemas - Pydantic models for validation"""

import re
from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, TypeAdapter, field_validator
from pydantic import ValidationError as SchemaError

from ...errors import ValidationError
from .status import AppointmentStatus
from .validation import as_utc

_ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


def _require_iso_datetime(v):
    # Epoch numbers and bare dates are not accepted as timestamps
    if isinstance(v, datetime):
        return v
    if not isinstance(v, str) or not _ISO_DATETIME.match(v):
        raise ValueError("must be an ISO-8601 date-time string")
    return v


IsoDatetime = Annotated[datetime, BeforeValidator(_require_iso_datetime)]

_iso_datetime_adapter = TypeAdapter(IsoDatetime)


def parse_timestamp(value: Any, field: str) -> Optional[datetime]:
    """Parse an optional timestamp taken from a loosely typed body."""
    if value is None:
        return None
    try:
        return _iso_datetime_adapter.validate_python(value)
    except SchemaError as e:
        raise ValidationError(f"{field}: must be an ISO-8601 date-time string") from e


class AppointmentCreate(BaseModel):
    """Schema for booking an appointment. The business comes from the URL path."""

    service_id: UUID
    user_id: Optional[UUID] = None
    staff_user_id: Optional[UUID] = None
    business_customer_id: Optional[UUID] = None
    start_time: IsoDatetime
    end_time: IsoDatetime
    # Accepted for compatibility; new appointments always start as pending
    status: AppointmentStatus = AppointmentStatus.pending


class AppointmentUpdate(BaseModel):
    """Partial update. Only fields present in the request body are written."""

    service_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    staff_user_id: Optional[UUID] = None
    business_customer_id: Optional[UUID] = None
    start_time: Optional[IsoDatetime] = None
    end_time: Optional[IsoDatetime] = None
    status: Optional[AppointmentStatus] = None

    @field_validator("service_id", "start_time", "end_time", "status")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class StatusChangeRequest(BaseModel):
    """Fields are read according to the action; times only matter for reschedule."""

    action: Any = None
    start_time: Any = None
    end_time: Any = None


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    business_id: str
    service_id: str
    user_id: Optional[str] = None
    business_customer_id: Optional[str] = None
    staff_user_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_time", "end_time", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v):
        if v is None:
            return v
        return as_utc(v)


class AppointmentEnvelope(BaseModel):
    data: AppointmentResponse


class AppointmentListEnvelope(BaseModel):
    data: list[AppointmentResponse]
