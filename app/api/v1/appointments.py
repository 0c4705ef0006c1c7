from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from ...core.database import get_db
from ...api.deps import require_operation
from ...models.appointment import AppointmentStatus, AppointmentType
from ...models.user import User
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, AppointmentUpdate
from ...schemas.common import to_naive_utc
from ...services.access_policy import Entity, ListFilters, Operation
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("")
async def list_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    type: Optional[AppointmentType] = None,
    patient: Optional[int] = None,
    doctor: Optional[int] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.APPOINTMENT, Operation.LIST))
):
    """List appointments visible to the caller."""
    filters = ListFilters(
        patient=patient,
        doctor=doctor,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        fields={"status": status_filter, "type": type},
    )
    appointments = AppointmentService(db).list_appointments(current_user, filters)

    return {
        "success": True,
        "count": len(appointments),
        "data": [AppointmentResponse.model_validate(a) for a in appointments],
    }

@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.APPOINTMENT, Operation.READ))
):
    appointment = AppointmentService(db).get_appointment(current_user, appointment_id)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.APPOINTMENT, Operation.CREATE))
):
    """Book an appointment. Patients always book for themselves."""
    appointment = AppointmentService(db).create_appointment(current_user, appointment_data)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}

@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.APPOINTMENT, Operation.UPDATE))
):
    appointment = AppointmentService(db).update_appointment(current_user, appointment_id, appointment_data)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}

@router.delete("/{appointment_id}")
async def cancel_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.APPOINTMENT, Operation.CANCEL))
):
    """Cancel an appointment. The record is kept with status 'cancelled'."""
    AppointmentService(db).cancel_appointment(current_user, appointment_id)
    return {"success": True, "message": "Appointment cancelled successfully"}
