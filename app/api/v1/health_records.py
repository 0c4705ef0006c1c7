from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from ...core.database import get_db
from ...api.deps import require_operation
from ...models.health_record import RecordType
from ...models.user import User
from ...schemas.common import to_naive_utc
from ...schemas.health_record import HealthRecordCreate, HealthRecordResponse, HealthRecordUpdate
from ...services.access_policy import Entity, ListFilters, Operation
from ...services.health_record_service import HealthRecordService

router = APIRouter(prefix="/health-records", tags=["Health Records"])

@router.get("")
async def list_health_records(
    record_type: Optional[RecordType] = Query(None, alias="recordType"),
    patient: Optional[int] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.HEALTH_RECORD, Operation.LIST))
):
    filters = ListFilters(
        patient=patient,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        fields={"record_type": record_type},
    )
    records = HealthRecordService(db).list_records(current_user, filters)

    return {
        "success": True,
        "count": len(records),
        "data": [HealthRecordResponse.model_validate(r) for r in records],
    }

@router.get("/{record_id}")
async def get_health_record(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.HEALTH_RECORD, Operation.READ))
):
    record = HealthRecordService(db).get_record(current_user, record_id)
    return {"success": True, "data": HealthRecordResponse.model_validate(record)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_health_record(
    record_data: HealthRecordCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.HEALTH_RECORD, Operation.CREATE))
):
    """Create a health record (doctor/admin)."""
    record = HealthRecordService(db).create_record(current_user, record_data)
    return {"success": True, "data": HealthRecordResponse.model_validate(record)}

@router.put("/{record_id}")
async def update_health_record(
    record_id: int,
    record_data: HealthRecordUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.HEALTH_RECORD, Operation.UPDATE))
):
    record = HealthRecordService(db).update_record(current_user, record_id, record_data)
    return {"success": True, "data": HealthRecordResponse.model_validate(record)}

@router.delete("/{record_id}")
async def delete_health_record(
    record_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.HEALTH_RECORD, Operation.DELETE))
):
    """Delete a health record (admin only)."""
    HealthRecordService(db).delete_record(current_user, record_id)
    return {"success": True, "message": "Health record deleted successfully"}
