"""Appointment service - Business logic for booking and status changes"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationError
from ...models import Appointment
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate, StatusChangeRequest, parse_timestamp
from .status import INITIAL_STATUS, PERMISSIVE_POLICY, StatusAction, StatusPolicy, parse_action
from .validation import as_utc, validate_create, validate_reschedule, validate_update

logger = logging.getLogger(__name__)


def _to_utc(value: datetime) -> datetime:
    return as_utc(value).astimezone(timezone.utc)


def _id(value) -> Optional[str]:
    return str(value) if value is not None else None


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, policy: StatusPolicy = PERMISSIVE_POLICY):
        self.db = db
        self.repo = AppointmentRepository()
        self.policy = policy

    def create_appointment(self, business_id: str, data: AppointmentCreate) -> Appointment:
        """Validate and book a new appointment; referential checks run one at a time"""
        validate_create(data)

        if self.repo.find_by_id(self.db, "business", business_id) is None:
            raise NotFoundError("business")

        service_id = _id(data.service_id)
        if self.repo.get_service_for_business(self.db, service_id, business_id) is None:
            raise ValidationError("service not found or does not belong to this business")

        user_id = _id(data.user_id)
        if user_id and self.repo.find_by_id(self.db, "profile", user_id) is None:
            raise ValidationError("user profile not found")

        business_customer_id = _id(data.business_customer_id)
        if business_customer_id and (
            self.repo.get_customer_for_business(self.db, business_customer_id, business_id) is None
        ):
            raise ValidationError(
                "business-customer not found or does not belong to this business"
            )

        if data.status != INITIAL_STATUS:
            logger.info(f"Ignoring requested status '{data.status.value}' on create")

        appointment = self.repo.insert(
            self.db,
            business_id=business_id,
            service_id=service_id,
            user_id=user_id,
            business_customer_id=business_customer_id,
            staff_user_id=_id(data.staff_user_id),
            start_time=_to_utc(data.start_time),
            end_time=_to_utc(data.end_time),
            status=INITIAL_STATUS.value,
        )
        logger.info(f"Appointment {appointment.id} booked for business {business_id}")
        return appointment

    def update_appointment(self, appointment_id: str, data: AppointmentUpdate) -> Appointment:
        """Apply a partial update; only jointly supplied fields are cross-checked"""
        validate_update(data)

        updates = {}
        for field in data.model_fields_set:
            value = getattr(data, field)
            if field in ("start_time", "end_time"):
                value = _to_utc(value)
            elif field == "status":
                value = value.value
            else:
                value = _id(value)
            updates[field] = value

        appointment = self.repo.update_partial(self.db, appointment_id, **updates)
        if appointment is None:
            raise NotFoundError("appointment")
        return appointment

    def change_status(self, appointment_id: str, data: StatusChangeRequest) -> Appointment:
        """Approve, cancel or reschedule an appointment"""
        action = parse_action(data.action)

        updates = {}
        if action == StatusAction.reschedule:
            start_time = parse_timestamp(data.start_time, "start_time")
            end_time = parse_timestamp(data.end_time, "end_time")
            validate_reschedule(start_time, end_time)
            updates["start_time"] = _to_utc(start_time)
            updates["end_time"] = _to_utc(end_time)

        appointment = self.repo.find_by_id(self.db, "appointment", appointment_id)
        if appointment is None:
            raise NotFoundError("appointment")

        updates["status"] = self.policy.apply(appointment.status, action).value
        logger.info(
            f"Appointment {appointment_id}: {action.value} ({appointment.status} -> {updates['status']})"
        )

        appointment = self.repo.update_partial(self.db, appointment_id, **updates)
        if appointment is None:
            raise NotFoundError("appointment")
        return appointment

    def delete_appointment(self, appointment_id: str) -> None:
        if not self.repo.delete(self.db, appointment_id):
            raise NotFoundError("appointment")
        logger.info(f"Appointment {appointment_id} deleted")

    def get_business_appointments(
        self, business_id: str, search: Optional[str] = None
    ) -> list[Appointment]:
        if self.repo.find_by_id(self.db, "business", business_id) is None:
            raise NotFoundError("business")
        return self.repo.list_for_business(self.db, business_id, search)
