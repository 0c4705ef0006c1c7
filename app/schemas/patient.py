from datetime import datetime
from pydantic import EmailStr
from typing import List, Optional
import enum

from ..models.patient import BloodGroup
from .common import APIModel, UserSummary, UTCDateTime

class ConditionStatus(str, enum.Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    CHRONIC = "chronic"

class AllergySeverity(str, enum.Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"

class MedicalCondition(APIModel):
    condition: Optional[str] = None
    diagnosis_date: Optional[UTCDateTime] = None
    status: ConditionStatus = ConditionStatus.ACTIVE
    notes: Optional[str] = None

class Allergy(APIModel):
    allergen: Optional[str] = None
    severity: AllergySeverity = AllergySeverity.MILD
    notes: Optional[str] = None

class Medication(APIModel):
    name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    prescribed_by: Optional[int] = None

class EmergencyContact(APIModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None

class Insurance(APIModel):
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None

class Measurement(APIModel):
    value: Optional[float] = None
    unit: Optional[str] = None

class PatientProfileUpdate(APIModel):
    medical_history: Optional[List[MedicalCondition]] = None
    allergies: Optional[List[Allergy]] = None
    medications: Optional[List[Medication]] = None
    emergency_contact: Optional[EmergencyContact] = None
    insurance: Optional[Insurance] = None
    blood_group: Optional[BloodGroup] = None
    height: Optional[Measurement] = None
    weight: Optional[Measurement] = None

# Creation accepts the same optional fields
PatientProfileCreate = PatientProfileUpdate

PROFILE_JSON_FIELDS = (
    "medical_history", "allergies", "medications",
    "emergency_contact", "insurance", "height", "weight",
)

class PatientResponse(APIModel):
    id: int
    user: UserSummary
    medical_history: List[MedicalCondition] = []
    allergies: List[Allergy] = []
    medications: List[Medication] = []
    emergency_contact: Optional[EmergencyContact] = None
    insurance: Optional[Insurance] = None
    blood_group: Optional[BloodGroup] = None
    height: Optional[Measurement] = None
    weight: Optional[Measurement] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
