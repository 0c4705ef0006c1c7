from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

def _values(enum_cls):
    return [m.value for m in enum_cls]

class CareType(str, enum.Enum):
    VACCINATION = "vaccination"
    SCREENING = "screening"
    HEALTH_CHECK = "health-check"
    WELLNESS_PROGRAM = "wellness-program"
    HEALTH_EDUCATION = "health-education"

class CareStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

class CarePriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class CareFrequency(str, enum.Enum):
    ONE_TIME = "one-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

class PreventiveCare(Base):
    __tablename__ = "preventive_care"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    care_type = Column(SQLEnum(CareType, values_callable=_values), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    scheduled_date = Column(DateTime, nullable=False, index=True)
    # Set once, on the first transition to COMPLETED
    completed_date = Column(DateTime, nullable=True)
    status = Column(
        SQLEnum(CareStatus, values_callable=_values),
        nullable=False,
        default=CareStatus.SCHEDULED,
        index=True,
    )
    priority = Column(SQLEnum(CarePriority, values_callable=_values), nullable=False, default=CarePriority.MEDIUM)
    recommendations = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    next_due_date = Column(DateTime, nullable=True)
    frequency = Column(SQLEnum(CareFrequency, values_callable=_values), nullable=False, default=CareFrequency.ONE_TIME)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    assigned_by = relationship("User", foreign_keys=[assigned_by_id])

    def __repr__(self):
        return f"<PreventiveCare(id={self.id}, patient_id={self.patient_id}, status='{self.status}')>"
