from datetime import datetime
from pydantic import Field, field_validator
from typing import List, Optional

from ..models.preventive_care import CareFrequency, CarePriority, CareStatus, CareType
from .common import APIModel, UserSummary, UTCDateTime

def _checked_title(value: Optional[str]) -> Optional[str]:
    if value is not None:
        value = value.strip()
        if len(value) < 3:
            raise ValueError("Title must be between 3 and 200 characters")
    return value

class PreventiveCareCreate(APIModel):
    patient: int
    care_type: CareType
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    scheduled_date: UTCDateTime
    priority: CarePriority = CarePriority.MEDIUM
    recommendations: List[str] = []
    notes: Optional[str] = None
    next_due_date: Optional[UTCDateTime] = None
    frequency: CareFrequency = CareFrequency.ONE_TIME

    @field_validator("title")
    @classmethod
    def title_required(cls, value: Optional[str]) -> Optional[str]:
        return _checked_title(value)

class PreventiveCareUpdate(APIModel):
    """Mutable fields; completed_date is derived from status, never written directly."""

    care_type: Optional[CareType] = None
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    scheduled_date: Optional[UTCDateTime] = None
    status: Optional[CareStatus] = None
    priority: Optional[CarePriority] = None
    recommendations: Optional[List[str]] = None
    notes: Optional[str] = None
    next_due_date: Optional[UTCDateTime] = None
    frequency: Optional[CareFrequency] = None

    @field_validator("title")
    @classmethod
    def title_required(cls, value: Optional[str]) -> Optional[str]:
        return _checked_title(value)

class PreventiveCareResponse(APIModel):
    id: int
    patient: UserSummary
    assigned_by: Optional[UserSummary] = None
    care_type: CareType
    title: str
    description: Optional[str] = None
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    status: CareStatus
    priority: CarePriority
    recommendations: List[str] = []
    notes: Optional[str] = None
    next_due_date: Optional[datetime] = None
    frequency: CareFrequency
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
