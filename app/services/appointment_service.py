from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import List, Optional
import logging

from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.user import User
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from ..schemas.common import updates_from
from .access_policy import Entity, ListFilters, Operation, Scope, compute_scope, enforce
from .user_service import UserService

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor),
        )

    def list_scope(self, user: User, filters: Optional[ListFilters] = None) -> Scope:
        """Row filter for the caller's appointment list."""
        return compute_scope(user, Entity.APPOINTMENT, filters)

    def list_appointments(self, user: User, filters: Optional[ListFilters] = None) -> List[Appointment]:
        """Appointments visible to the caller, latest first."""
        query = self.list_scope(user, filters).apply(self._query(), Appointment)
        return query.order_by(
            Appointment.appointment_date.desc(),
            Appointment.appointment_time.desc(),
        ).all()

    def get_appointment(self, user: User, appointment_id: int, operation: Operation = Operation.READ) -> Appointment:
        """Fetch one appointment, 404 before 403."""
        appointment = self._query().filter(Appointment.id == appointment_id).first()
        return enforce(user, Entity.APPOINTMENT, operation, appointment, "Appointment not found")

    def create_appointment(self, user: User, data: AppointmentCreate) -> Appointment:
        """Book an appointment with an active doctor."""
        users = UserService(self.db)
        if user.role == UserRole.PATIENT or data.patient is None:
            patient_id = user.id
        else:
            patient_id = users.get_patient_user(data.patient).id

        users.get_active_doctor(data.doctor)

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=data.doctor,
            appointment_date=data.appointment_date,
            appointment_time=data.appointment_time,
            duration=data.duration,
            type=data.type,
            status=AppointmentStatus.SCHEDULED,
            reason=data.reason,
            notes=data.notes,
            prescription=[],
        )
        self.db.add(appointment)
        self.db.commit()

        logger.info(f"Appointment {appointment.id} booked for patient {patient_id} with doctor {data.doctor}")
        return self._query().filter(Appointment.id == appointment.id).first()

    def update_appointment(self, user: User, appointment_id: int, data: AppointmentUpdate) -> Appointment:
        """Update an appointment; only its parties or an admin may do so."""
        appointment = self.get_appointment(user, appointment_id, Operation.UPDATE)

        for name, value in updates_from(data, json_fields=("prescription",)).items():
            setattr(appointment, name, value)
        appointment.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(appointment)
        return appointment

    def cancel_appointment(self, user: User, appointment_id: int) -> Appointment:
        """Soft delete: the appointment stays, only its status changes."""
        appointment = self.get_appointment(user, appointment_id, Operation.CANCEL)

        appointment.status = AppointmentStatus.CANCELLED
        appointment.updated_at = datetime.utcnow()
        self.db.commit()

        logger.info(f"Appointment {appointment.id} cancelled by user {user.id}")
        return appointment
