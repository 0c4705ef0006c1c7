from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import List, Optional
import logging

from ..models.preventive_care import CareStatus, PreventiveCare
from ..models.user import User
from ..schemas.common import updates_from
from ..schemas.preventive_care import PreventiveCareCreate, PreventiveCareUpdate
from .access_policy import Entity, ListFilters, Operation, Scope, compute_scope, enforce
from .user_service import UserService

logger = logging.getLogger(__name__)

JSON_FIELDS = ("recommendations",)

class PreventiveCareService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(PreventiveCare).options(
            joinedload(PreventiveCare.patient),
            joinedload(PreventiveCare.assigned_by),
        )

    def list_scope(self, user: User, filters: Optional[ListFilters] = None) -> Scope:
        """Row filter for the caller's preventive care list."""
        return compute_scope(user, Entity.PREVENTIVE_CARE, filters)

    def list_items(self, user: User, filters: Optional[ListFilters] = None) -> List[PreventiveCare]:
        """Items visible to the caller, latest scheduled first."""
        query = self.list_scope(user, filters).apply(self._query(), PreventiveCare)
        return query.order_by(PreventiveCare.scheduled_date.desc(), PreventiveCare.id.desc()).all()

    def get_item(self, user: User, item_id: int, operation: Operation = Operation.READ) -> PreventiveCare:
        """Fetch one preventive care item, 404 before 403."""
        item = self._query().filter(PreventiveCare.id == item_id).first()
        return enforce(user, Entity.PREVENTIVE_CARE, operation, item, "Preventive care record not found")

    def create_item(self, user: User, data: PreventiveCareCreate) -> PreventiveCare:
        """Assign preventive care to a patient."""
        UserService(self.db).get_patient_user(data.patient)

        values = updates_from(data, json_fields=JSON_FIELDS)
        values["patient_id"] = values.pop("patient")
        values.setdefault("recommendations", [])

        item = PreventiveCare(**values, assigned_by_id=user.id, status=CareStatus.SCHEDULED)
        self.db.add(item)
        self.db.commit()

        logger.info(f"Preventive care {item.id} ({item.care_type.value}) assigned to patient {item.patient_id} by user {user.id}")
        return self._query().filter(PreventiveCare.id == item.id).first()

    def update_item(self, user: User, item_id: int, data: PreventiveCareUpdate, now: Optional[datetime] = None) -> PreventiveCare:
        """Update an item, stamping completed_date the first time it completes."""
        item = self.get_item(user, item_id, Operation.UPDATE)
        now = now or datetime.utcnow()

        for name, value in updates_from(data, json_fields=JSON_FIELDS).items():
            setattr(item, name, value)

        # completed_date records the first completion only
        if data.status == CareStatus.COMPLETED and item.completed_date is None:
            item.completed_date = now
            logger.info(f"Preventive care {item.id} completed")
        item.updated_at = now

        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, user: User, item_id: int) -> None:
        """Delete a preventive care item."""
        item = self.get_item(user, item_id, Operation.DELETE)

        self.db.delete(item)
        self.db.commit()
        logger.info(f"Preventive care {item_id} deleted by user {user.id}")
