"""Cross-field rules for appointment payloads.

Each check raises ``ValidationError`` on the first violation; callers rely on
the order in which they run.
"""

from datetime import datetime, timezone
from typing import Optional

from ...errors import ValidationError

END_BEFORE_START = "end_time must be strictly after start_time"
CUSTOMER_XOR = "either user or business-customer must be set, not both or neither"
RESCHEDULE_MISSING_TIMES = "missing start_time or end_time for reschedule"


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def check_time_window(start_time: Optional[datetime], end_time: Optional[datetime]) -> None:
    if start_time is None or end_time is None:
        raise ValidationError(END_BEFORE_START)
    if as_utc(end_time) <= as_utc(start_time):
        raise ValidationError(END_BEFORE_START)


def check_customer_reference(user_id, business_customer_id) -> None:
    if (user_id is None) == (business_customer_id is None):
        raise ValidationError(CUSTOMER_XOR)


def validate_create(payload) -> None:
    check_time_window(payload.start_time, payload.end_time)
    check_customer_reference(payload.user_id, payload.business_customer_id)


def validate_update(payload) -> None:
    """Only fields supplied together in the same payload are checked against each other."""
    supplied = payload.model_fields_set
    if {"user_id", "business_customer_id"} <= supplied:
        check_customer_reference(payload.user_id, payload.business_customer_id)
    if {"start_time", "end_time"} <= supplied:
        check_time_window(payload.start_time, payload.end_time)


def validate_reschedule(start_time: Optional[datetime], end_time: Optional[datetime]) -> None:
    if start_time is None or end_time is None:
        raise ValidationError(RESCHEDULE_MISSING_TIMES)
    check_time_window(start_time, end_time)
