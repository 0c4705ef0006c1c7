from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_current_user, require_operation
from ...models.user import User
from ...schemas.patient import PatientProfileCreate, PatientProfileUpdate, PatientResponse
from ...services.access_policy import Entity, Operation
from ...services.patient_service import PatientService

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("")
async def list_patients(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PATIENT, Operation.LIST))
):
    """List patient profiles (doctor/admin)."""
    patients = PatientService(db).list_patients(current_user)
    return {
        "success": True,
        "count": len(patients),
        "data": [PatientResponse.model_validate(p) for p in patients],
    }

@router.get("/me")
async def get_my_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The caller's own profile, created on first access."""
    profile = PatientService(db).get_own_profile(current_user)
    return {"success": True, "data": PatientResponse.model_validate(profile)}

@router.get("/{patient_id}")
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PATIENT, Operation.READ))
):
    profile = PatientService(db).get_patient(current_user, patient_id)
    return {"success": True, "data": PatientResponse.model_validate(profile)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_patient_profile(
    profile_data: PatientProfileCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PATIENT, Operation.CREATE))
):
    profile = PatientService(db).create_profile(current_user, profile_data)
    return {"success": True, "data": PatientResponse.model_validate(profile)}

@router.put("/{patient_id}")
async def update_patient_profile(
    patient_id: int,
    profile_data: PatientProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_operation(Entity.PATIENT, Operation.UPDATE))
):
    profile = PatientService(db).update_profile(current_user, patient_id, profile_data)
    return {"success": True, "data": PatientResponse.model_validate(profile)}
