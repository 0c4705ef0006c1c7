from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timedelta
from typing import Optional
import logging

from ..core.config import settings
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..models.preventive_care import CareStatus, PreventiveCare
from ..models.user import User
from .access_policy import Constraint, Entity, compute_scope

logger = logging.getLogger(__name__)

class ReminderService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def _appointment_title(self, appointment: Appointment) -> str:
        other = appointment.doctor if self.user.role == UserRole.PATIENT else appointment.patient
        return f"Appointment with {other.name if other else 'Unknown'}"

    def get_reminders(self, now: Optional[datetime] = None) -> dict:
        """
        Upcoming appointments and preventive care in ``[now, now + window]``
        (both ends inclusive), plus preventive care already past due.
        """
        now = now or datetime.utcnow()
        window_end = now + timedelta(days=settings.REMINDER_WINDOW_DAYS)
        limit = settings.REMINDER_LIMIT

        appointment_scope = compute_scope(self.user, Entity.APPOINTMENT).and_(
            Constraint("appointment_date", "gte", now),
            Constraint("appointment_date", "lte", window_end),
            Constraint("status", "in", (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)),
        )
        appointments = (
            appointment_scope.apply(
                self.db.query(Appointment).options(
                    joinedload(Appointment.patient), joinedload(Appointment.doctor)
                ),
                Appointment,
            )
            .order_by(Appointment.appointment_date.asc(), Appointment.appointment_time.asc())
            .limit(limit)
            .all()
        )

        care_scope = compute_scope(self.user, Entity.PREVENTIVE_CARE).and_(
            Constraint("status", "eq", CareStatus.SCHEDULED),
        )
        upcoming_care = (
            care_scope.and_(
                Constraint("scheduled_date", "gte", now),
                Constraint("scheduled_date", "lte", window_end),
            )
            .apply(self.db.query(PreventiveCare), PreventiveCare)
            .order_by(PreventiveCare.scheduled_date.asc())
            .limit(limit)
            .all()
        )
        overdue_care = (
            care_scope.and_(Constraint("scheduled_date", "lt", now))
            .apply(self.db.query(PreventiveCare), PreventiveCare)
            .order_by(PreventiveCare.scheduled_date.asc())
            .limit(limit)
            .all()
        )

        return {
            "appointments": [
                {
                    "id": appointment.id,
                    "type": "appointment",
                    "title": self._appointment_title(appointment),
                    "date": appointment.appointment_date,
                    "time": appointment.appointment_time,
                    "description": appointment.reason,
                }
                for appointment in appointments
            ],
            "preventiveCare": [self._care_item(item) for item in upcoming_care],
            "overdue": [dict(self._care_item(item), overdue=True) for item in overdue_care],
        }

    @staticmethod
    def _care_item(item: PreventiveCare) -> dict:
        return {
            "id": item.id,
            "type": "preventive-care",
            "title": item.title,
            "date": item.scheduled_date,
            "description": item.description,
            "priority": item.priority.value,
        }
