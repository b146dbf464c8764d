"""
Router pour les élèves archivés : consultation et restauration.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import require_super_admin
from app.schemas.session import AdminSession
from app.schemas.student import DeletedStudentResponse, StudentResponse
from app.services import student_service

router = APIRouter(prefix="/api/v1/deleted-students", tags=["Élèves supprimés"])


@router.get("", response_model=List[DeletedStudentResponse], summary="Lister les élèves supprimés")
def list_deleted_students(
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin),
):
    """Archives triées de la plus récente à la plus ancienne."""
    return student_service.list_deleted_students(db)


@router.post(
    "/{deleted_id}/restore",
    response_model=StudentResponse,
    status_code=201,
    summary="Restaurer un élève supprimé",
)
def restore_student(
    deleted_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(require_super_admin),
):
    """Recrée l'élève depuis l'archive. Numéro étudiant réattribué entre-temps → 409."""
    try:
        student = student_service.restore_student(db, deleted_id, session)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    if student is None:
        raise HTTPException(status_code=404, detail="Archive introuvable.")
    return student
