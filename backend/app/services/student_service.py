"""
Service métier pour le cycle de vie des élèves : création, mise à jour,
suppression archivée, suppression groupée, restauration et décision sur les documents.
"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.events import STUDENTS, feed
from app.models.deleted_student import DeletedStudent
from app.models.requirement import RequirementSubmission
from app.models.student import Student
from app.schemas.session import AdminSession
from app.schemas.student import (
    BulkDeleteFailure,
    BulkDeleteReport,
    StudentCreate,
    StudentUpdate,
)
from app.services import auth_service
from app.services.activity_logger import log_activity
from app.services.requirement_service import requirement_name
from app.services.visibility import can_view

logger = logging.getLogger(__name__)

# Colonnes copiées dans l'archive (tout sauf les horodatages gérés par la BDD)
SNAPSHOT_FIELDS = [
    "id", "student_number", "first_name", "last_name", "email", "program", "section",
    "year_level", "contact", "field", "company_name", "status", "location_preference",
    "profile_picture_url", "avatar_base64", "requirements", "uid", "created_at",
]
RESTORABLE_FIELDS = [f for f in SNAPSHOT_FIELDS if f not in ("id", "created_at")]


def _jsonable(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def full_name(student: Any) -> str:
    return f"{student.first_name or ''} {student.last_name or ''}".strip() or "Unknown"


def snapshot_student(student: Student) -> Dict[str, Any]:
    """Copie JSON de tous les champs de l'élève, telle qu'avant suppression."""
    return {name: _jsonable(getattr(student, name, None)) for name in SNAPSHOT_FIELDS}


def find_by_student_number(db: Session, student_number: str) -> Optional[Student]:
    return db.execute(
        select(Student).where(Student.student_number == student_number)
    ).scalar_one_or_none()


def create_student(db: Session, data: StudentCreate, session: Optional[AdminSession] = None) -> Student:
    """
    Crée un élève saisi manuellement et son compte d'authentification.
    Lève une ValueError si le numéro étudiant existe déjà.
    """
    if find_by_student_number(db, data.student_number) is not None:
        raise ValueError(f"Un élève avec le numéro '{data.student_number}' existe déjà.")

    student = Student(**data.model_dump())
    try:
        student.uid = auth_service.create_account(db, data.email)
    except SQLAlchemyError as exc:
        # Le compte pourra être créé plus tard, l'élève reste enregistré
        logger.warning("Création du compte d'authentification impossible pour %s : %s", data.email, exc)

    db.add(student)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"Un élève avec le numéro '{data.student_number}' existe déjà.")
    db.refresh(student)

    log_activity(db, "create_student", "student", student.id, {"studentName": full_name(student)}, session)
    feed.publish(STUDENTS, "created", str(student.id))
    return student


def update_student(db: Session, student_id: uuid.UUID, data: StudentUpdate) -> Optional[Student]:
    """Met à jour les champs fournis. Retourne None si l'élève est introuvable."""
    student = db.get(Student, student_id)
    if student is None:
        return None

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    feed.publish(STUDENTS, "updated", str(student_id))
    return student


def delete_student(
    db: Session,
    student_id: uuid.UUID,
    session: Optional[AdminSession] = None,
    publish: bool = True,
) -> bool:
    """
    Supprime un élève :
    1. Copie d'archive dans deleted_students (avant toute suppression)
    2. Suppression best effort du compte d'authentification
    3. Suppression de l'élève et journalisation
    Retourne False si l'élève est introuvable.
    `publish=False` laisse l'appelant notifier le changement (suppression groupée).
    """
    student = db.get(Student, student_id)
    if student is None:
        return False

    snapshot = snapshot_student(student)
    db.add(DeletedStudent(
        id=student.id,
        data=snapshot,
        deleted_by_role=session.role if session else None,
    ))
    db.flush()

    if not auth_service.attempt_delete_account(db, student.uid, student.email):
        logger.info("Élève %s supprimé sans compte d'authentification associé", student_id)

    db.delete(student)
    db.commit()

    log_activity(db, "delete_student", "student", student_id, {"studentName": full_name(student)}, session)
    if publish:
        feed.publish(STUDENTS, "deleted", str(student_id))
    return True


def bulk_delete_students(
    db: Session,
    student_ids: List[uuid.UUID],
    session: Optional[AdminSession] = None,
    program_map: Optional[Mapping[str, str]] = None,
) -> BulkDeleteReport:
    """
    Supprime les élèves un par un ; l'échec d'un élément est consigné
    dans le rapport sans interrompre le lot.
    Un élève hors du périmètre de la session est traité comme introuvable.
    Le changement est publié une seule fois pour tout le lot.
    """
    report = BulkDeleteReport(deleted=[], failed=[])

    for student_id in student_ids:
        try:
            if session is not None and not _is_visible(db, student_id, session, program_map):
                report.failed.append(BulkDeleteFailure(student_id=student_id, reason="Élève introuvable."))
            elif delete_student(db, student_id, session, publish=False):
                report.deleted.append(student_id)
            else:
                report.failed.append(BulkDeleteFailure(student_id=student_id, reason="Élève introuvable."))
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Suppression de l'élève %s impossible : %s", student_id, exc)
            report.failed.append(BulkDeleteFailure(student_id=student_id, reason=str(exc)))

    if report.deleted:
        log_activity(
            db, "bulk_delete_students", "student", None,
            {"count": len(report.deleted), "studentIds": [str(i) for i in report.deleted]},
            session,
        )
        feed.publish(STUDENTS, "deleted")

    logger.info("Suppression groupée : %d supprimés, %d échecs", len(report.deleted), len(report.failed))
    return report


def _is_visible(
    db: Session,
    student_id: uuid.UUID,
    session: AdminSession,
    program_map: Optional[Mapping[str, str]],
) -> bool:
    student = db.get(Student, student_id)
    if student is None:
        return False
    return can_view(session, {"program": student.program, "section": student.section}, program_map)


def list_deleted_students(db: Session) -> List[DeletedStudent]:
    """Archives, les plus récentes d'abord."""
    return db.execute(
        select(DeletedStudent).order_by(DeletedStudent.deleted_at.desc())
    ).scalars().all()


def restore_student(db: Session, deleted_id: uuid.UUID, session: Optional[AdminSession] = None) -> Optional[Student]:
    """
    Recrée l'élève depuis son instantané et retire l'archive.
    Lève une ValueError si le numéro étudiant a été réattribué entre-temps.
    """
    archived = db.get(DeletedStudent, deleted_id)
    if archived is None:
        return None

    data = dict(archived.data or {})
    student_number = data.get("student_number")
    if student_number and find_by_student_number(db, student_number) is not None:
        raise ValueError(f"Le numéro '{student_number}' est déjà attribué à un autre élève.")

    student = Student(id=archived.id, **{k: data.get(k) for k in RESTORABLE_FIELDS if k in data})
    db.add(student)
    db.delete(archived)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Impossible de restaurer l'élève : conflit avec un élève existant.")
    db.refresh(student)

    log_activity(db, "restore_student", "student", student.id, {"studentName": full_name(student)}, session)
    feed.publish(STUDENTS, "restored", str(student.id))
    return student


def decide_requirement(
    db: Session,
    student_id: uuid.UUID,
    name: str,
    status: str,
    reason: Optional[str] = None,
    session: Optional[AdminSession] = None,
) -> Optional[Student]:
    """
    Accepte ou refuse un document soumis.
    Retourne None si l'élève est introuvable ; lève une ValueError si le document n'existe pas.
    """
    student = db.get(Student, student_id)
    if student is None:
        return None

    raw = student.requirements
    wanted = name.strip().lower()
    updated = False

    if isinstance(raw, dict):
        new_raw: Any = {}
        for key, value in raw.items():
            if isinstance(value, dict) and (
                key.strip().lower() == wanted or requirement_name(value).lower() == wanted
            ):
                value = {**value, "status": status, "reviewReason": reason}
                updated = True
            new_raw[key] = value
    else:
        # Les entrées non conformes sont conservées telles quelles
        new_raw = []
        for requirement in raw if isinstance(raw, list) else []:
            if isinstance(requirement, dict) and requirement_name(requirement).lower() == wanted:
                requirement = {**requirement, "status": status, "reviewReason": reason}
                updated = True
            new_raw.append(requirement)

    if updated:
        # Nouvelle valeur pour que SQLAlchemy détecte la modification du JSON
        student.requirements = new_raw
    else:
        submission = db.execute(
            select(RequirementSubmission).where(
                RequirementSubmission.student_id == student_id,
                func.lower(RequirementSubmission.name) == wanted,
            )
        ).scalar_one_or_none()
        if submission is None:
            raise ValueError(f"Document '{name}' introuvable pour cet élève.")
        submission.status = status

    db.commit()
    db.refresh(student)

    action = "approve_requirement" if status == "accepted" else "deny_requirement"
    log_activity(db, action, "student", student_id, {"requirementType": name, "reason": reason}, session)
    feed.publish(STUDENTS, "updated", str(student_id))
    return student
