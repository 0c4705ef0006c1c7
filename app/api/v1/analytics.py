from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from typing import Optional

from ...core.database import get_db
from ...api.deps import get_current_user
from ...models.user import User
from ...schemas.common import to_naive_utc
from ...services.analytics_service import AnalyticsService
from ...services.reminder_service import ReminderService

router = APIRouter(tags=["Analytics"])

@router.get("/analytics/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Counts over everything the caller can list."""
    return {"success": True, "data": AnalyticsService(db, current_user).dashboard()}

@router.get("/analytics/health-trends")
async def health_trends(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    patient: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Vital-sign history, oldest first, at most 100 samples."""
    trends = AnalyticsService(db, current_user).health_trends(
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        patient=patient,
    )
    return {"success": True, "count": len(trends), "data": trends}

@router.get("/reminders")
async def reminders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Upcoming appointments and preventive care for the next week, plus overdue care."""
    return {"success": True, "data": ReminderService(db, current_user).get_reminders()}
