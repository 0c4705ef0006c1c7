from datetime import datetime
from pydantic import Field, field_validator
from typing import List, Optional

from ..models.appointment import AppointmentStatus, AppointmentType
from .common import APIModel, UserSummary, UTCDateTime

TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"

class Prescription(APIModel):
    medication: Optional[str] = None
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    duration: Optional[str] = None

class AppointmentCreate(APIModel):
    doctor: int
    # Ignored when the caller is a patient
    patient: Optional[int] = None
    appointment_date: UTCDateTime
    appointment_time: str = Field(..., pattern=TIME_PATTERN)
    duration: int = Field(30, ge=15, le=240)
    type: AppointmentType = AppointmentType.CONSULTATION
    reason: str = Field(..., max_length=500)
    notes: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def reason_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Reason is required")
        return value

    @field_validator("appointment_date")
    @classmethod
    def not_in_past(cls, value: datetime) -> datetime:
        if value < datetime.utcnow():
            raise ValueError("Appointment date cannot be in the past")
        return value

class AppointmentUpdate(APIModel):
    """Mutable appointment fields; patient and doctor never change."""

    appointment_date: Optional[UTCDateTime] = None
    appointment_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    duration: Optional[int] = Field(None, ge=15, le=240)
    type: Optional[AppointmentType] = None
    status: Optional[AppointmentStatus] = None
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    notes: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: Optional[List[Prescription]] = None

class AppointmentResponse(APIModel):
    id: int
    patient: UserSummary
    doctor: UserSummary
    appointment_date: datetime
    appointment_time: str
    duration: int
    type: AppointmentType
    status: AppointmentStatus
    reason: str
    notes: Optional[str] = None
    diagnosis: Optional[str] = None
    prescription: List[Prescription] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
