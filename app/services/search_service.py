from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from typing import Optional
import logging

from ..core.config import settings
from ..core.exceptions import BadRequestError
from ..models.appointment import Appointment
from ..models.health_record import HealthRecord
from ..models.preventive_care import PreventiveCare
from ..models.user import User
from ..schemas.appointment import AppointmentResponse
from ..schemas.common import UserResponse
from ..schemas.health_record import HealthRecordResponse
from ..schemas.preventive_care import PreventiveCareResponse
from .access_policy import Entity, Operation, compute_scope, is_permitted

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("users", "appointments", "healthRecords", "preventiveCare")

class SearchService:
    def __init__(self, db: Session, user: User):
        self.db = db
        self.user = user

    def search(self, q: Optional[str], only: Optional[str] = None) -> dict:
        """
        Case-insensitive substring search over each entity the caller may list.

        ``only`` restricts the fan-out to a single entity; the others are not
        queried at all.
        """
        term = (q or "").strip()
        if len(term) < settings.SEARCH_MIN_QUERY_LENGTH:
            raise BadRequestError(
                f"Search query must be at least {settings.SEARCH_MIN_QUERY_LENGTH} characters"
            )
        if only is not None and only not in SEARCH_TYPES:
            raise BadRequestError(f"Search type must be one of: {', '.join(SEARCH_TYPES)}")

        results = {name: [] for name in SEARCH_TYPES}
        limit = settings.SEARCH_RESULT_LIMIT

        def wanted(name: str) -> bool:
            return only is None or only == name

        if wanted("users") and is_permitted(self.user, Entity.USER, Operation.LIST):
            users = (
                compute_scope(self.user, Entity.USER)
                .apply(self.db.query(User), User)
                .filter(or_(User.name.icontains(term, autoescape=True), User.email.icontains(term, autoescape=True)))
                .limit(limit)
                .all()
            )
            results["users"] = [UserResponse.model_validate(u) for u in users]

        if wanted("appointments"):
            appointments = (
                compute_scope(self.user, Entity.APPOINTMENT)
                .apply(
                    self.db.query(Appointment).options(
                        joinedload(Appointment.patient), joinedload(Appointment.doctor)
                    ),
                    Appointment,
                )
                .filter(or_(
                    Appointment.reason.icontains(term, autoescape=True),
                    Appointment.notes.icontains(term, autoescape=True),
                    Appointment.diagnosis.icontains(term, autoescape=True),
                ))
                .limit(limit)
                .all()
            )
            results["appointments"] = [AppointmentResponse.model_validate(a) for a in appointments]

        if wanted("healthRecords"):
            records = (
                compute_scope(self.user, Entity.HEALTH_RECORD)
                .apply(
                    self.db.query(HealthRecord).options(
                        joinedload(HealthRecord.patient), joinedload(HealthRecord.recorded_by)
                    ),
                    HealthRecord,
                )
                .filter(or_(
                    HealthRecord.title.icontains(term, autoescape=True),
                    HealthRecord.notes.icontains(term, autoescape=True),
                    HealthRecord.lab_results["testName"].as_string().icontains(term, autoescape=True),
                ))
                .limit(limit)
                .all()
            )
            results["healthRecords"] = [HealthRecordResponse.model_validate(r) for r in records]

        if wanted("preventiveCare"):
            items = (
                compute_scope(self.user, Entity.PREVENTIVE_CARE)
                .apply(
                    self.db.query(PreventiveCare).options(
                        joinedload(PreventiveCare.patient), joinedload(PreventiveCare.assigned_by)
                    ),
                    PreventiveCare,
                )
                .filter(or_(
                    PreventiveCare.title.icontains(term, autoescape=True),
                    PreventiveCare.description.icontains(term, autoescape=True),
                    PreventiveCare.notes.icontains(term, autoescape=True),
                ))
                .limit(limit)
                .all()
            )
            results["preventiveCare"] = [PreventiveCareResponse.model_validate(i) for i in items]

        total = sum(len(found) for found in results.values())
        logger.info(f"Search by user {self.user.id} for '{term}' returned {total} results")

        return {
            "query": term,
            "totalResults": total,
            "results": results,
        }
