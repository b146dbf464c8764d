"""
Router pour les élèves.
Listage filtré par rôle (GET /api/v1/students)
Création manuelle, mise à jour, suppression archivée et suppression groupée
Import CSV (POST /api/v1/students/upload)
Migration des avatars (POST /api/v1/students/avatars/migrate)
Consultation, décision et téléchargement des documents exigés
"""

import uuid
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import RedirectResponse, Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_admin_session, require_super_admin
from app.models.student import Student
from app.schemas.migration import AvatarMigrationReport
from app.schemas.requirement import RequirementFetchResult
from app.schemas.session import COORDINATOR, AdminSession
from app.schemas.student import (
    BulkDeleteReport,
    BulkDeleteRequest,
    RequirementDecision,
    StudentCreate,
    StudentImportReport,
    StudentResponse,
    StudentUpdate,
)
from app.services import student_service
from app.services.avatar_migration import migrate_avatars
from app.services.download_service import resolve_download
from app.services.program_service import load_program_college_map
from app.services.requirement_service import classify_fetch_error, fetch_requirements, find_file
from app.services.storage import ObjectStore, get_object_store
from app.services.student_import import parse_and_import_csv
from app.services.visibility import can_view, visible_records

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


def _program_map(db: Session, session: AdminSession) -> dict:
    # Seuls les coordinateurs ont besoin du rattachement programme → collège
    return load_program_college_map(db) if session.role == COORDINATOR else {}


def _get_visible_student(db: Session, student_id: uuid.UUID, session: AdminSession) -> Student:
    """Élève existant et visible pour la session, sinon 404."""
    student = db.get(Student, student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    record = {"program": student.program, "section": student.section}
    if not can_view(session, record, _program_map(db, session)):
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.get("", response_model=List[StudentResponse], summary="Lister les élèves visibles")
def list_students(
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Retourne les élèves visibles pour le rôle courant, triés par nom puis prénom."""
    students = db.execute(
        select(Student).order_by(Student.last_name, Student.first_name)
    ).scalars().all()
    records = [StudentResponse.model_validate(s).model_dump() for s in students]
    return visible_records(session, records, _program_map(db, session))


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève manuellement")
def create_student(
    data: StudentCreate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Crée un élève manuellement (hors import CSV). Numéro étudiant déjà utilisé → 409."""
    try:
        return student_service.create_student(db, data, session)
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.put("/{student_id}", response_model=StudentResponse, summary="Modifier un élève")
def update_student(
    student_id: uuid.UUID,
    data: StudentUpdate,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Met à jour les champs fournis d'un élève. Les champs absents ne sont pas modifiés."""
    _get_visible_student(db, student_id, session)
    student = student_service.update_student(db, student_id, data)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.delete("/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_student(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Archive l'élève dans deleted_students puis le supprime, ainsi que son compte."""
    _get_visible_student(db, student_id, session)
    if not student_service.delete_student(db, student_id, session):
        raise HTTPException(status_code=404, detail="Élève introuvable.")


@router.post("/bulk-delete", response_model=BulkDeleteReport, summary="Supprimer plusieurs élèves")
def bulk_delete_students(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Supprime la sélection élève par élève ; les échecs sont listés dans le rapport."""
    return student_service.bulk_delete_students(db, data.student_ids, session, _program_map(db, session))


ALLOWED_CONTENT_TYPES = {"text/csv", "text/plain", "application/vnd.ms-excel"}
MAX_FILE_SIZE_MB = 5


@router.post("/upload", response_model=StudentImportReport, summary="Importer des élèves via CSV")
async def upload_students(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """
    Importe une liste d'élèves depuis un fichier CSV.

    Format attendu du CSV :
    - Colonnes obligatoires : `Student Number`, `First Name`, `Last Name` (ou `Name`), `Email`, `Program`
    - Colonnes optionnelles : `Section`, `Year Level`, `Contact`, `Company`, `Status`
    - Séparateur : virgule (`,`) ou point-virgule (`;`)
    - Encodage : UTF-8 (avec ou sans BOM)

    Retourne un rapport détaillant les insertions, les doublons et les rejets.
    """
    # Validation du type de fichier
    if file.content_type not in ALLOWED_CONTENT_TYPES and not (file.filename or "").endswith(".csv"):
        raise HTTPException(
            status_code=400,
            detail="Format invalide. Seuls les fichiers CSV sont acceptés."
        )

    content = await file.read()

    # Validation de la taille
    if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {MAX_FILE_SIZE_MB} Mo."
        )

    if not content:
        raise HTTPException(status_code=400, detail="Le fichier CSV est vide.")

    return parse_and_import_csv(content, db, session)


@router.post("/avatars/migrate", response_model=AvatarMigrationReport, summary="Migrer les avatars base64")
def migrate_student_avatars(
    db: Session = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
    session: AdminSession = Depends(require_super_admin),
):
    """Déplace les photos de profil inline vers le stockage objet (super admin uniquement)."""
    return migrate_avatars(db, store, session)


@router.get(
    "/{student_id}/requirements",
    response_model=RequirementFetchResult,
    summary="Documents exigés d'un élève",
)
def get_requirements(
    student_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """Liste normalisée des documents ; une erreur de récupération est renvoyée dans `error`."""
    try:
        _get_visible_student(db, student_id, session)
    except SQLAlchemyError as exc:
        return RequirementFetchResult(student_id=student_id, error=classify_fetch_error(exc))
    return fetch_requirements(db, student_id)


@router.put(
    "/{student_id}/requirements/{requirement_name}",
    response_model=StudentResponse,
    summary="Accepter ou refuser un document",
)
def decide_requirement(
    student_id: uuid.UUID,
    requirement_name: str,
    data: RequirementDecision,
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    _get_visible_student(db, student_id, session)
    try:
        student = student_service.decide_requirement(
            db, student_id, requirement_name, data.status, data.reason, session
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.get("/{student_id}/requirements/download", summary="Télécharger un document")
def download_requirement_file(
    student_id: uuid.UUID,
    url: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
):
    """
    Télécharge un fichier déposé par l'élève.
    Seules les URLs figurant parmi ses documents sont servies ; si la récupération
    échoue, le client est redirigé vers l'URL d'origine.
    """
    _get_visible_student(db, student_id, session)
    result = fetch_requirements(db, student_id)
    if result.error:
        raise HTTPException(status_code=502, detail=result.error)

    uploaded = find_file(result, url)
    if uploaded is None:
        raise HTTPException(status_code=404, detail="Fichier introuvable pour cet élève.")

    try:
        download = resolve_download(uploaded)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if download.is_redirect:
        return RedirectResponse(download.redirect_url, status_code=307)
    return Response(
        content=download.content,
        media_type=download.media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(download.filename)}"},
    )
