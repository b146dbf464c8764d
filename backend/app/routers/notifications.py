"""
Router pour les notifications envoyées aux élèves.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_admin_session
from app.schemas.notification import NotificationCreate, NotificationResponse, NotificationSendResult
from app.schemas.session import AdminSession
from app.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.post("", response_model=NotificationSendResult, status_code=201, summary="Envoyer une notification")
def send_notification(
    data: NotificationCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """
    Envoie un message à tous les élèves, à une sélection ou à une section.
    Seules les NOTIFICATION_RETENTION notifications les plus récentes sont conservées.
    """
    return notification_service.send_notification(db, data, session)


@router.get("", response_model=List[NotificationResponse], summary="Notifications récentes")
def list_notifications(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    return notification_service.list_recent(db, limit)


@router.delete("/{notification_id}", status_code=204, summary="Supprimer une notification")
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    if not notification_service.delete_notification(db, notification_id, session):
        raise HTTPException(status_code=404, detail="Notification introuvable.")
