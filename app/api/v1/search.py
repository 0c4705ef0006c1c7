from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...api.deps import get_current_user
from ...models.user import User
from ...services.search_service import SearchService

router = APIRouter(prefix="/search", tags=["Search"])

@router.get("")
async def search(
    q: Optional[str] = None,
    type: Optional[str] = Query(None, description="users | appointments | healthRecords | preventiveCare"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Search across all entities the caller can see."""
    return {"success": True, **SearchService(db, current_user).search(q, only=type)}
