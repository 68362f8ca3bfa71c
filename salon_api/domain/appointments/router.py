"""Appointment router - FastAPI endpoints for booking and status changes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import Principal, require_permission
from ...database import get_db
from ...permissions import Action, Resource
from .schemas import (
    AppointmentCreate,
    AppointmentEnvelope,
    AppointmentListEnvelope,
    AppointmentResponse,
    AppointmentUpdate,
    StatusChangeRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.get("/businesses/{business_id}/appointments", response_model=AppointmentListEnvelope)
async def get_business_appointments(
    business_id: str,
    search: Optional[str] = Query(None),
    principal: Principal = Depends(require_permission(Resource.appointment, Action.view)),
    service: AppointmentService = Depends(get_appointment_service),
):
    """List a business's appointments by start time, optionally filtered by customer name"""
    appointments = service.get_business_appointments(business_id, search)
    return AppointmentListEnvelope(
        data=[AppointmentResponse.model_validate(a) for a in appointments]
    )


@router.post(
    "/businesses/{business_id}/appointments",
    response_model=AppointmentEnvelope,
    status_code=201,
)
async def create_appointment(
    business_id: str,
    data: AppointmentCreate,
    principal: Principal = Depends(require_permission(Resource.appointment, Action.create)),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; it always starts as pending"""
    appointment = service.create_appointment(business_id, data)
    return AppointmentEnvelope(data=AppointmentResponse.model_validate(appointment))


@router.put("/appointments/{appointment_id}", response_model=AppointmentEnvelope)
async def update_appointment(
    appointment_id: str,
    data: AppointmentUpdate,
    principal: Principal = Depends(require_permission(Resource.appointment, Action.update)),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.update_appointment(appointment_id, data)
    return AppointmentEnvelope(data=AppointmentResponse.model_validate(appointment))


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentEnvelope)
async def update_appointment_status(
    appointment_id: str,
    data: StatusChangeRequest,
    principal: Principal = Depends(require_permission(Resource.appointment, Action.update)),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Apply approve, cancel or reschedule"""
    appointment = service.change_status(appointment_id, data)
    return AppointmentEnvelope(data=AppointmentResponse.model_validate(appointment))


@router.delete("/appointments/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: str,
    principal: Principal = Depends(require_permission(Resource.appointment, Action.delete)),
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id)
    return Response(status_code=204)
