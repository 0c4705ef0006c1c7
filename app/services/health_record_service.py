from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import List, Optional
import logging

from ..models.health_record import HealthRecord
from ..models.user import User
from ..schemas.common import updates_from
from ..schemas.health_record import HealthRecordCreate, HealthRecordUpdate
from .access_policy import Entity, ListFilters, Operation, Scope, compute_scope, enforce
from .user_service import UserService

logger = logging.getLogger(__name__)

JSON_FIELDS = ("vital_signs", "lab_results", "attachments")

class HealthRecordService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(HealthRecord).options(
            joinedload(HealthRecord.patient),
            joinedload(HealthRecord.recorded_by),
        )

    def list_scope(self, user: User, filters: Optional[ListFilters] = None) -> Scope:
        """Row filter for the caller's health record list."""
        return compute_scope(user, Entity.HEALTH_RECORD, filters)

    def list_records(self, user: User, filters: Optional[ListFilters] = None) -> List[HealthRecord]:
        """Records visible to the caller, newest first."""
        query = self.list_scope(user, filters).apply(self._query(), HealthRecord)
        return query.order_by(HealthRecord.date.desc(), HealthRecord.id.desc()).all()

    def get_record(self, user: User, record_id: int, operation: Operation = Operation.READ) -> HealthRecord:
        """Fetch one health record, 404 before 403."""
        record = self._query().filter(HealthRecord.id == record_id).first()
        return enforce(user, Entity.HEALTH_RECORD, operation, record, "Health record not found")

    def create_record(self, user: User, data: HealthRecordCreate) -> HealthRecord:
        """Create a record with the caller as recorder."""
        UserService(self.db).get_patient_user(data.patient)

        values = updates_from(data, json_fields=JSON_FIELDS)
        values["patient_id"] = values.pop("patient")
        values.setdefault("attachments", [])

        record = HealthRecord(**values, recorded_by_id=user.id)
        self.db.add(record)
        self.db.commit()

        logger.info(f"Health record {record.id} ({record.record_type.value}) recorded for patient {record.patient_id} by user {user.id}")
        return self._query().filter(HealthRecord.id == record.id).first()

    def update_record(self, user: User, record_id: int, data: HealthRecordUpdate) -> HealthRecord:
        """Update a record the caller recorded."""
        record = self.get_record(user, record_id, Operation.UPDATE)

        for name, value in updates_from(data, json_fields=JSON_FIELDS).items():
            setattr(record, name, value)
        record.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(record)
        return record

    def delete_record(self, user: User, record_id: int) -> None:
        """Delete a health record."""
        record = self.get_record(user, record_id, Operation.DELETE)

        self.db.delete(record)
        self.db.commit()
        logger.info(f"Health record {record_id} deleted by user {user.id}")
