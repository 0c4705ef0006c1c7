from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.exceptions import NotFoundError
from ..core.security import UserRole
from ..models.user import User

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: Session):
        self.db = db

    def list_users(self, role: Optional[UserRole] = None, skip: int = 0, limit: int = 50) -> List[User]:
        """List users, optionally by role."""
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()

    def list_doctors(self) -> List[User]:
        """Active doctors, for booking appointments."""
        return (
            self.db.query(User)
            .filter(User.role == UserRole.DOCTOR, User.is_active == True)  # noqa: E712
            .order_by(User.name)
            .all()
        )

    def set_active(self, user_id: int, is_active: bool) -> User:
        """Activate or deactivate an account."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")

        user.is_active = is_active
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.id} {'activated' if is_active else 'deactivated'}")
        return user

    def get_active_doctor(self, doctor_id: int) -> User:
        """Resolve a doctor who can take appointments."""
        doctor = self.db.query(User).filter(
            User.id == doctor_id,
            User.role == UserRole.DOCTOR,
            User.is_active == True,  # noqa: E712
        ).first()
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor

    def get_patient_user(self, patient_id: int) -> User:
        """Resolve a user id that must belong to a patient."""
        patient = self.db.query(User).filter(
            User.id == patient_id,
            User.role == UserRole.PATIENT,
        ).first()
        if not patient:
            raise NotFoundError("Patient not found")
        return patient
