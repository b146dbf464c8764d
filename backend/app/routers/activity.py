"""
Router pour le journal d'activité des administrateurs.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_super_admin
from app.models.activity_log import ActivityLog
from app.schemas.activity import ActivityLogResponse

router = APIRouter(
    prefix="/api/v1/activity-logs",
    tags=["Journal d'activité"],
    dependencies=[Depends(require_super_admin)],
)


@router.get("", response_model=List[ActivityLogResponse], summary="Journal d'activité")
def list_activity_logs(
    action: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Actions les plus récentes d'abord, filtrables par type d'action."""
    query = select(ActivityLog)
    if action:
        query = query.where(ActivityLog.action == action)
    return db.execute(query.order_by(ActivityLog.timestamp.desc()).limit(limit)).scalars().all()
