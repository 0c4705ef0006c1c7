from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...api.deps import require_operation
from ...models.preventive_care import CarePriority, CareStatus, CareType
from ...models.user import User
from ...schemas.preventive_care import PreventiveCareCreate, PreventiveCareResponse, PreventiveCareUpdate
from ...services.access_policy import Entity, ListFilters, Operation
from ...services.preventive_care_service import PreventiveCareService

router = APIRouter(prefix="/preventive-care", tags=["Preventive Care"])

@router.get("")
async def list_preventive_care(
    care_type: Optional[CareType] = Query(None, alias="careType"),
    status_filter: Optional[CareStatus] = Query(None, alias="status"),
    priority: Optional[CarePriority] = None,
    patient: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PREVENTIVE_CARE, Operation.LIST))
):
    filters = ListFilters(
        patient=patient,
        fields={"care_type": care_type, "status": status_filter, "priority": priority},
    )
    items = PreventiveCareService(db).list_items(current_user, filters)

    return {
        "success": True,
        "count": len(items),
        "data": [PreventiveCareResponse.model_validate(i) for i in items],
    }

@router.get("/{item_id}")
async def get_preventive_care(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PREVENTIVE_CARE, Operation.READ))
):
    item = PreventiveCareService(db).get_item(current_user, item_id)
    return {"success": True, "data": PreventiveCareResponse.model_validate(item)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_preventive_care(
    care_data: PreventiveCareCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PREVENTIVE_CARE, Operation.CREATE))
):
    """Assign a preventive care item to a patient (doctor/admin)."""
    item = PreventiveCareService(db).create_item(current_user, care_data)
    return {"success": True, "data": PreventiveCareResponse.model_validate(item)}

@router.put("/{item_id}")
async def update_preventive_care(
    item_id: int,
    care_data: PreventiveCareUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PREVENTIVE_CARE, Operation.UPDATE))
):
    """Update a preventive care item; completing it stamps completedDate once."""
    item = PreventiveCareService(db).update_item(current_user, item_id, care_data)
    return {"success": True, "data": PreventiveCareResponse.model_validate(item)}

@router.delete("/{item_id}")
async def delete_preventive_care(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PREVENTIVE_CARE, Operation.DELETE))
):
    """Delete a preventive care item (admin only)."""
    PreventiveCareService(db).delete_item(current_user, item_id)
    return {"success": True, "message": "Preventive care record deleted successfully"}
