"""
Dashboard statistics and health trends.

Every count runs against ``scope_for(entity)``, which is the same scope an
unfiltered list request would get, so the dashboard never reports records the
caller could not list.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Dict, List, Optional
import logging

from ..core.config import settings
from ..models.appointment import Appointment, AppointmentStatus
from ..models.health_record import HealthRecord, RecordType
from ..models.preventive_care import CareStatus, PreventiveCare
from ..models.user import User
from ..schemas.health_record import HealthTrendPoint
from .access_policy import Constraint, Entity, ListFilters, Scope, compute_scope

logger = logging.getLogger(__name__)

UPCOMING_STATUSES = (AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)

class AnalyticsService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def scope_for(self, entity: Entity) -> Scope:
        """Same scope an unfiltered list would use."""
        return compute_scope(self.user, entity, ListFilters())

    def _count(self, model, scope: Scope) -> int:
        return scope.apply(self.db.query(func.count(model.id)), model).scalar() or 0

    def _group_count(self, model, column, scope: Scope) -> Dict[str, int]:
        rows = scope.apply(self.db.query(column, func.count(model.id)), model).group_by(column).all()
        return {getattr(key, "value", key): count for key, count in rows}

    def dashboard(self, now: Optional[datetime] = None) -> dict:
        """Counts and breakdowns over the caller's list scopes."""
        now = now or datetime.utcnow()

        appointments = self.scope_for(Entity.APPOINTMENT)
        records = self.scope_for(Entity.HEALTH_RECORD)
        care = self.scope_for(Entity.PREVENTIVE_CARE)
        recent_since = now - timedelta(days=settings.RECENT_RECORDS_DAYS)

        return {
            "appointments": {
                "total": self._count(Appointment, appointments),
                "upcoming": self._count(Appointment, appointments.and_(
                    Constraint("appointment_date", "gte", now),
                    Constraint("status", "in", UPCOMING_STATUSES),
                )),
                "completed": self._count(Appointment, appointments.and_(
                    Constraint("status", "eq", AppointmentStatus.COMPLETED),
                )),
                "byStatus": self._group_count(Appointment, Appointment.status, appointments),
                "byType": self._group_count(Appointment, Appointment.type, appointments),
            },
            "healthRecords": {
                "total": self._count(HealthRecord, records),
                "recent": self._count(HealthRecord, records.and_(
                    Constraint("date", "gte", recent_since),
                )),
                "byType": self._group_count(HealthRecord, HealthRecord.record_type, records),
            },
            "preventiveCare": {
                "total": self._count(PreventiveCare, care),
                "overdue": self._count(PreventiveCare, care.and_(
                    Constraint("scheduled_date", "lt", now),
                    Constraint("status", "eq", CareStatus.SCHEDULED),
                )),
                "completed": self._count(PreventiveCare, care.and_(
                    Constraint("status", "eq", CareStatus.COMPLETED),
                )),
                "byType": self._group_count(PreventiveCare, PreventiveCare.care_type, care),
            },
        }

    def health_trends(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        patient: Optional[int] = None,
    ) -> List[HealthTrendPoint]:
        """
        Vital-sign samples in ascending date order.

        The result is truncated at HEALTH_TRENDS_MAX_SAMPLES; callers that need
        more narrow the date window instead of paging.
        """
        scope = compute_scope(self.user, Entity.HEALTH_RECORD, ListFilters(
            patient=patient,
            start_date=start_date,
            end_date=end_date,
            fields={"record_type": RecordType.VITAL_SIGNS},
        ))
        records = (
            scope.apply(self.db.query(HealthRecord.date, HealthRecord.vital_signs), HealthRecord)
            .order_by(HealthRecord.date.asc(), HealthRecord.id.asc())
            .limit(settings.HEALTH_TRENDS_MAX_SAMPLES)
            .all()
        )

        trends = []
        for date, vital_signs in records:
            vital_signs = vital_signs or {}
            trends.append(HealthTrendPoint(
                date=date,
                blood_pressure=vital_signs.get("bloodPressure"),
                heart_rate=vital_signs.get("heartRate"),
                temperature=vital_signs.get("temperature"),
                weight=vital_signs.get("weight"),
            ))
        return trends
