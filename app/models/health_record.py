from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from datetime import datetime

from ..core.database import Base

class RecordType(str, enum.Enum):
    VITAL_SIGNS = "vital-signs"
    LAB_RESULT = "lab-result"
    IMAGING = "imaging"
    VACCINATION = "vaccination"
    SCREENING = "screening"
    OTHER = "other"

class HealthRecord(Base):
    __tablename__ = "health_records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    recorded_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    record_type = Column(
        SQLEnum(RecordType, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    title = Column(String(200), nullable=False)
    date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    # Structured payloads
    vital_signs = Column(JSON, nullable=True)
    lab_results = Column(JSON, nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    recorded_by = relationship("User", foreign_keys=[recorded_by_id])

    def __repr__(self):
        return f"<HealthRecord(id={self.id}, patient_id={self.patient_id}, type='{self.record_type}')>"
