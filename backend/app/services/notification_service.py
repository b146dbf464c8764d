"""
Service d'envoi des notifications aux élèves.
Les notifications sont conservées avec une rétention bornée : au-delà de
NOTIFICATION_RETENTION, les plus anciennes sont supprimées après chaque envoi.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.config import settings
from app.events import NOTIFICATIONS, feed
from app.models.notification import Notification
from app.models.student import Student
from app.schemas.notification import (
    NotificationCreate,
    NotificationResponse,
    NotificationSendResult,
    SectionTarget,
    StudentsTarget,
)
from app.schemas.session import AdminSession
from app.services.activity_logger import log_activity

logger = logging.getLogger(__name__)

TARGET_ALL = "ALL"
TARGET_STUDENTS = "STUDENTS"
TARGET_SECTION = "SECTION"


def count_recipients(db: Session, data: NotificationCreate) -> int:
    """Nombre d'élèves concernés par la cible."""
    target = data.target
    if isinstance(target, StudentsTarget):
        return len(target.student_ids)
    if isinstance(target, SectionTarget):
        return db.execute(
            select(func.count(Student.id)).where(
                func.lower(func.trim(Student.section)) == target.section.lower()
            )
        ).scalar() or 0
    return db.execute(select(func.count(Student.id))).scalar() or 0


def prune_notifications(db: Session, keep: int) -> int:
    """
    Supprime les notifications au-delà des `keep` plus récentes.
    Retourne le nombre de lignes supprimées. Ne commite pas.
    """
    stale_ids = db.execute(
        select(Notification.id)
        .order_by(Notification.timestamp.desc(), Notification.id.desc())
        .offset(keep)
    ).scalars().all()
    if not stale_ids:
        return 0

    db.execute(delete(Notification).where(Notification.id.in_(stale_ids)))
    return len(stale_ids)


def send_notification(
    db: Session, data: NotificationCreate, session: Optional[AdminSession] = None
) -> NotificationSendResult:
    """
    Enregistre la notification, applique la rétention puis journalise l'envoi.
    La validation (message vide, cible vide) est faite par le schéma en amont.
    """
    target = data.target
    notification = Notification(message=data.message, sent_by=session.username if session else None)
    if isinstance(target, StudentsTarget):
        notification.target_type = TARGET_STUDENTS
        notification.target_student_ids = [str(i) for i in target.student_ids]
    elif isinstance(target, SectionTarget):
        notification.target_type = TARGET_SECTION
        notification.target_section = target.section
    else:
        notification.target_type = TARGET_ALL

    recipients = count_recipients(db, data)

    db.add(notification)
    db.flush()
    pruned = prune_notifications(db, settings.NOTIFICATION_RETENTION)
    db.commit()
    db.refresh(notification)

    log_activity(
        db, "send_notification", "notification", notification.id,
        {"targetType": notification.target_type, "recipients": recipients, "message": data.message[:100]},
        session,
    )
    feed.publish(NOTIFICATIONS, "created", str(notification.id))

    logger.info(
        "Notification envoyée (%s, %d destinataires, %d anciennes supprimées)",
        notification.target_type, recipients, pruned,
    )
    return NotificationSendResult(
        notification=NotificationResponse.model_validate(notification),
        recipient_count=recipients,
        pruned=pruned,
    )


def list_recent(db: Session, limit: Optional[int] = None) -> List[Notification]:
    """Notifications les plus récentes d'abord."""
    return db.execute(
        select(Notification)
        .order_by(Notification.timestamp.desc())
        .limit(limit or settings.NOTIFICATION_RECENT_LIMIT)
    ).scalars().all()


def delete_notification(
    db: Session, notification_id: uuid.UUID, session: Optional[AdminSession] = None
) -> bool:
    notification = db.get(Notification, notification_id)
    if notification is None:
        return False

    db.delete(notification)
    db.commit()
    log_activity(db, "delete_notification", "notification", notification_id, None, session)
    feed.publish(NOTIFICATIONS, "deleted", str(notification_id))
    return True
