"""
Journal d'activité des administrateurs (piste d'audit).
Un échec de journalisation ne doit jamais faire échouer l'action journalisée.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.schemas.session import AdminSession

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    action: str,
    entity_type: str,
    entity_id: Optional[Any] = None,
    details: Optional[Dict[str, Any]] = None,
    session: Optional[AdminSession] = None,
    status: str = "success",
) -> None:
    """Enregistre une action (create_student, delete_student, send_notification...)."""
    try:
        db.add(ActivityLog(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details or {},
            status=status,
            admin_id=session.admin_id if session else None,
            admin_username=(session.username if session else None) or "unknown",
            admin_role=session.role if session else "unknown",
        ))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de journalisation de l'activité %s : %s", action, exc)
