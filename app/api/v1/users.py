from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_admin_user, get_current_user
from ...services.user_service import UserService
from ...schemas.auth import UserStatusUpdate
from ...schemas.common import UserResponse, UserSummary
from ...models.user import User

router = APIRouter(prefix="/users", tags=["Users"])

@router.get("")
async def list_users(
    role: Optional[UserRole] = None,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """List all users (admin only)."""
    users = UserService(db).list_users(role=role, skip=skip, limit=limit)
    return {
        "success": True,
        "count": len(users),
        "data": [UserResponse.model_validate(u) for u in users],
    }

@router.get("/doctors")
async def list_doctors(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Directory of active doctors available for booking."""
    doctors = UserService(db).list_doctors()
    return {
        "success": True,
        "count": len(doctors),
        "data": [UserSummary.model_validate(d) for d in doctors],
    }

@router.patch("/{user_id}/status")
async def update_user_status(
    user_id: int,
    status_data: UserStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Activate or deactivate a user (admin only)."""
    user = UserService(db).set_active(user_id, status_data.is_active)

    return {
        "success": True,
        "message": f"User {'activated' if status_data.is_active else 'deactivated'} successfully",
        "data": UserResponse.model_validate(user),
    }
