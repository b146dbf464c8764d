"""
Migration des photos de profil encodées en base64 vers le stockage objet.

Pour chaque élève ayant encore `avatar_base64` :
  1. Détecter le type MIME (préfixe data: ou signature base64)
  2. Écrire le fichier sous profilePictures/<id>/profile.<ext>
  3. Enregistrer l'URL signée et vider `avatar_base64`
Un échec sur un élève est consigné sans interrompre les suivants.
"""

import base64
import binascii
import logging
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.events import STUDENTS, feed
from app.models.student import Student
from app.schemas.migration import AvatarMigrationItem, AvatarMigrationReport
from app.schemas.session import AdminSession
from app.services.activity_logger import log_activity
from app.services.storage import ObjectStore

logger = logging.getLogger(__name__)

JPEG_SIGNATURE = "/9j/"
PNG_SIGNATURE = "iVBORw0KGgo"


def detect_mime_type(encoded: str) -> str:
    """Type MIME d'une image base64, JPEG par défaut."""
    if encoded.startswith("data:"):
        header = encoded.split(",", 1)[0]
        mime = header[5:].split(";", 1)[0]
        if mime:
            return mime
    payload = encoded.split(",", 1)[-1]
    if payload.startswith(PNG_SIGNATURE):
        return "image/png"
    if payload.startswith(JPEG_SIGNATURE):
        return "image/jpeg"
    return "image/jpeg"


def decode_avatar(encoded: str) -> Tuple[bytes, str]:
    """Retourne (octets, extension). Lève ValueError si le base64 est invalide."""
    mime = detect_mime_type(encoded)
    payload = encoded.split(",", 1)[1] if encoded.startswith("data:") else encoded
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Image base64 invalide : {exc}") from exc
    if not data:
        raise ValueError("Image base64 vide")
    extension = "png" if mime == "image/png" else "jpg"
    return data, extension


def avatar_path(student_id, extension: str) -> str:
    return f"profilePictures/{student_id}/profile.{extension}"


def migrate_avatars(
    db: Session, store: ObjectStore, session: Optional[AdminSession] = None
) -> AvatarMigrationReport:
    """Migre tous les avatars inline. Chaque élève est commité séparément."""
    students = db.execute(
        select(Student).where(Student.avatar_base64.isnot(None), Student.avatar_base64 != "")
    ).scalars().all()

    results = []
    for student in students:
        try:
            data, extension = decode_avatar(student.avatar_base64)
            path = store.put(avatar_path(student.id, extension), data)
            url = store.download_url(path)
            student.profile_picture_url = url
            student.avatar_base64 = None
            db.commit()
            results.append(AvatarMigrationItem(student_id=student.id, success=True, download_url=url))
        except Exception as exc:
            db.rollback()
            logger.error("Migration de l'avatar de %s impossible : %s", student.id, exc)
            results.append(AvatarMigrationItem(student_id=student.id, success=False, error=str(exc)))

    migrated = sum(1 for r in results if r.success)
    report = AvatarMigrationReport(
        total=len(results),
        migrated=migrated,
        failed=len(results) - migrated,
        results=results,
    )

    if report.total:
        log_activity(
            db, "migrate_avatars", "student", None,
            {"total": report.total, "migrated": report.migrated, "failed": report.failed},
            session,
            status="success" if not report.failed else "partial",
        )
    if report.migrated:
        feed.publish(STUDENTS, "updated")

    logger.info("Migration des avatars : %d/%d migrés, %d échecs", report.migrated, report.total, report.failed)
    return report
