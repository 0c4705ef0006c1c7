from sqlalchemy import Column, Integer, ForeignKey, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class BloodGroup(str, enum.Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"

class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    # Medical information
    medical_history = Column(JSON, nullable=False, default=list)
    allergies = Column(JSON, nullable=False, default=list)
    medications = Column(JSON, nullable=False, default=list)
    blood_group = Column(
        SQLEnum(BloodGroup, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
    height = Column(JSON, nullable=True)  # {"value": 180, "unit": "cm"}
    weight = Column(JSON, nullable=True)  # {"value": 75, "unit": "kg"}

    # Contacts
    emergency_contact = Column(JSON, nullable=True)
    insurance = Column(JSON, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient_profile")

    def __repr__(self):
        return f"<Patient(id={self.id}, user_id={self.user_id})>"
