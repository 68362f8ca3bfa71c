"""Appointment repository - Database operations for appointments and the rows they reference"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import InternalError, ValidationError
from ...models import Appointment, Business, BusinessCustomer, Profile, Service

logger = logging.getLogger(__name__)

ENTITY_MODELS = {
    "appointment": Appointment,
    "business": Business,
    "business-customer": BusinessCustomer,
    "profile": Profile,
    "service": Service,
}


def _storage_failure(db: Session, operation: str, error: SQLAlchemyError):
    db.rollback()
    if isinstance(error, IntegrityError):
        logger.warning(f"Integrity violation during {operation}: {error.orig}")
        return ValidationError("appointment references a record that does not exist")
    logger.error(f"Storage failure during {operation}: {error}")
    return InternalError()


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def find_by_id(db: Session, entity: str, entity_id: str):
        """Get any supported row by primary key, or None"""
        model = ENTITY_MODELS[entity]
        try:
            return db.query(model).filter(model.id == entity_id).first()
        except SQLAlchemyError as e:
            raise _storage_failure(db, f"{entity} lookup", e) from e

    @staticmethod
    def get_service_for_business(db: Session, service_id: str, business_id: str) -> Optional[Service]:
        try:
            return (
                db.query(Service)
                .filter(Service.id == service_id, Service.business_id == business_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise _storage_failure(db, "service lookup", e) from e

    @staticmethod
    def get_customer_for_business(
        db: Session, business_customer_id: str, business_id: str
    ) -> Optional[BusinessCustomer]:
        try:
            return (
                db.query(BusinessCustomer)
                .filter(
                    BusinessCustomer.id == business_customer_id,
                    BusinessCustomer.business_id == business_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            raise _storage_failure(db, "business-customer lookup", e) from e

    @staticmethod
    def insert(db: Session, **fields) -> Appointment:
        """Create a new appointment"""
        appointment = Appointment(**fields)
        db.add(appointment)
        try:
            db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(db, "appointment insert", e) from e
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_partial(db: Session, appointment_id: str, **updates) -> Optional[Appointment]:
        """Write the given fields onto an appointment. Returns None if it does not exist."""
        appointment = AppointmentRepository.find_by_id(db, "appointment", appointment_id)
        if appointment is None:
            return None

        for key, value in updates.items():
            setattr(appointment, key, value)
        appointment.updated_at = datetime.now(timezone.utc)

        try:
            db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(db, "appointment update", e) from e
        db.refresh(appointment)
        return appointment

    @staticmethod
    def delete(db: Session, appointment_id: str) -> bool:
        """Delete an appointment. Returns False if nothing matched."""
        try:
            deleted = db.query(Appointment).filter(Appointment.id == appointment_id).delete(
                synchronize_session=False
            )
            db.commit()
        except SQLAlchemyError as e:
            raise _storage_failure(db, "appointment delete", e) from e
        return deleted > 0

    @staticmethod
    def list_for_business(
        db: Session, business_id: str, search: Optional[str] = None
    ) -> list[Appointment]:
        """Appointments of a business ordered by start time, optionally filtered by customer name"""
        query = db.query(Appointment).filter(Appointment.business_id == business_id)

        if search:
            search_term = f"%{search.lower()}%"
            query = query.join(Profile, Appointment.user_id == Profile.id).filter(
                Profile.full_name.ilike(search_term)
            )

        try:
            return query.order_by(Appointment.start_time.asc()).all()
        except SQLAlchemyError as e:
            raise _storage_failure(db, "appointment listing", e) from e
