"""
Planificateur APScheduler pour les tâches de maintenance périodiques :
- migration des avatars base64 vers le stockage objet
- rétention des notifications (seules les plus récentes sont conservées)
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.config import settings
from app.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _migrate_avatars_scheduled() -> None:
    """
    Tâche planifiée : migre les avatars encore stockés en base64.
    Import local pour éviter les imports circulaires.
    """
    from app.services.avatar_migration import migrate_avatars
    from app.services.storage import get_object_store

    db = SessionLocal()
    try:
        report = migrate_avatars(db, get_object_store())
        if report.total:
            logger.info(
                "Migration automatique des avatars : %d migrés, %d échecs sur %d",
                report.migrated, report.failed, report.total,
            )
    except Exception as exc:
        logger.error("Erreur lors de la migration automatique des avatars : %s", exc)
    finally:
        db.close()


def _prune_notifications_scheduled() -> None:
    """Tâche planifiée : applique la rétention des notifications."""
    from app.services.notification_service import prune_notifications

    db = SessionLocal()
    try:
        pruned = prune_notifications(db, settings.NOTIFICATION_RETENTION)
        db.commit()
        if pruned:
            logger.info("Rétention des notifications : %d supprimées", pruned)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la rétention des notifications : %s", exc)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    scheduler.add_job(
        _migrate_avatars_scheduled,
        trigger="interval",
        hours=settings.AVATAR_MIGRATION_INTERVAL_HOURS,
        id="avatar_migration",
        replace_existing=True,
    )
    scheduler.add_job(
        _prune_notifications_scheduled,
        trigger="interval",
        hours=1,
        id="notification_retention",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré — migration des avatars toutes les %dh, rétention des notifications toutes les heures.",
        settings.AVATAR_MIGRATION_INTERVAL_HOURS,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
