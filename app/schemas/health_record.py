from datetime import datetime
from pydantic import Field, field_validator
from typing import Any, List, Optional
import enum

from ..models.health_record import RecordType
from .common import APIModel, UserSummary, UTCDateTime

def _required_title(value: Optional[str]) -> Optional[str]:
    if value is not None:
        value = value.strip()
        if not value:
            raise ValueError("Title is required")
    return value

class TemperatureUnit(str, enum.Enum):
    CELSIUS = "celsius"
    FAHRENHEIT = "fahrenheit"

class LabStatus(str, enum.Enum):
    NORMAL = "normal"
    ABNORMAL = "abnormal"
    CRITICAL = "critical"

class BloodPressure(APIModel):
    systolic: Optional[int] = Field(None, ge=50, le=250)
    diastolic: Optional[int] = Field(None, ge=30, le=150)

class Temperature(APIModel):
    value: Optional[float] = None
    unit: TemperatureUnit = TemperatureUnit.CELSIUS

class VitalSigns(APIModel):
    blood_pressure: Optional[BloodPressure] = None
    heart_rate: Optional[int] = Field(None, ge=30, le=220)
    temperature: Optional[Temperature] = None
    respiratory_rate: Optional[int] = None
    oxygen_saturation: Optional[float] = None
    weight: Optional[float] = None
    height: Optional[float] = None

class LabResults(APIModel):
    test_name: Optional[str] = None
    results: Optional[Any] = None
    normal_range: Optional[str] = None
    status: LabStatus = LabStatus.NORMAL

class Attachment(APIModel):
    file_name: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[str] = None

class HealthRecordCreate(APIModel):
    patient: int
    record_type: RecordType
    title: str = Field(..., min_length=1, max_length=200)
    date: Optional[UTCDateTime] = None
    vital_signs: Optional[VitalSigns] = None
    lab_results: Optional[LabResults] = None
    notes: Optional[str] = None
    attachments: List[Attachment] = []

    @field_validator("title")
    @classmethod
    def title_required(cls, value: Optional[str]) -> Optional[str]:
        return _required_title(value)

class HealthRecordUpdate(APIModel):
    """Mutable health record fields; the owning patient never changes."""

    record_type: Optional[RecordType] = None
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    date: Optional[UTCDateTime] = None
    vital_signs: Optional[VitalSigns] = None
    lab_results: Optional[LabResults] = None
    notes: Optional[str] = None
    attachments: Optional[List[Attachment]] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, value: Optional[str]) -> Optional[str]:
        return _required_title(value)

class HealthRecordResponse(APIModel):
    id: int
    patient: UserSummary
    recorded_by: Optional[UserSummary] = None
    record_type: RecordType
    title: str
    date: datetime
    vital_signs: Optional[VitalSigns] = None
    lab_results: Optional[LabResults] = None
    notes: Optional[str] = None
    attachments: List[Attachment] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class HealthTrendPoint(APIModel):
    date: datetime
    blood_pressure: Optional[BloodPressure] = None
    heart_rate: Optional[int] = None
    temperature: Optional[Temperature] = None
    weight: Optional[float] = None
