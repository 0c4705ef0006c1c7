from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import List
import logging

from ..core.exceptions import BadRequestError, NotFoundError
from ..core.security import UserRole
from ..models.patient import Patient
from ..models.user import User
from ..schemas.common import updates_from
from ..schemas.patient import PROFILE_JSON_FIELDS, PatientProfileCreate, PatientProfileUpdate
from .access_policy import Entity, Operation, compute_scope, enforce

logger = logging.getLogger(__name__)

class PatientService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Patient).options(joinedload(Patient.user))

    def list_patients(self, user: User) -> List[Patient]:
        """All patient profiles (staff only)."""
        query = compute_scope(user, Entity.PATIENT).apply(self._query(), Patient)
        return query.order_by(Patient.created_at.desc(), Patient.id.desc()).all()

    def get_own_profile(self, user: User) -> Patient:
        """The caller's profile, created empty on a patient's first access."""
        profile = self._query().filter(Patient.user_id == user.id).first()
        if profile is None:
            if user.role != UserRole.PATIENT:
                raise NotFoundError("Patient not found")
            profile = self._create(user, {})
        return profile

    def get_patient(self, user: User, patient_id: int, operation: Operation = Operation.READ) -> Patient:
        """Fetch one profile, 404 before 403."""
        profile = self._query().filter(Patient.id == patient_id).first()
        return enforce(user, Entity.PATIENT, operation, profile, "Patient not found")

    def create_profile(self, user: User, data: PatientProfileCreate) -> Patient:
        """Create the caller's profile."""
        existing = self.db.query(Patient).filter(Patient.user_id == user.id).first()
        if existing:
            raise BadRequestError("Patient profile already exists")
        return self._create(user, updates_from(data, json_fields=PROFILE_JSON_FIELDS))

    def update_profile(self, user: User, patient_id: int, data: PatientProfileUpdate) -> Patient:
        """Update a profile, keeping fields the caller did not send."""
        profile = self.get_patient(user, patient_id, Operation.UPDATE)

        for name, value in updates_from(data, json_fields=PROFILE_JSON_FIELDS).items():
            setattr(profile, name, value)
        profile.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(profile)
        return profile

    def _create(self, user: User, values: dict) -> Patient:
        values.setdefault("medical_history", [])
        values.setdefault("allergies", [])
        values.setdefault("medications", [])

        profile = Patient(user_id=user.id, **values)
        self.db.add(profile)
        self.db.commit()

        logger.info(f"Created patient profile {profile.id} for user {user.id}")
        return self._query().filter(Patient.id == profile.id).first()
