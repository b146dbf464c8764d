"""
Schémas Pydantic pour les élèves.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, EmailStr, field_validator


class StudentCreate(BaseModel):
    """Schéma de création manuelle d'un élève (POST /students)."""
    student_number: str
    first_name: str
    last_name: str
    email: EmailStr
    program: str
    section: Optional[str] = None
    year_level: Optional[str] = None
    contact: Optional[str] = None
    field: Optional[str] = None
    company_name: Optional[str] = None
    status: bool = False
    location_preference: Optional[Dict[str, bool]] = None

    @field_validator("student_number", "first_name", "last_name", "program")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Schéma de mise à jour d'un élève (PUT /students/{id})."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    program: Optional[str] = None
    section: Optional[str] = None
    year_level: Optional[str] = None
    contact: Optional[str] = None
    field: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[bool] = None
    location_preference: Optional[Dict[str, bool]] = None

    @field_validator("first_name", "last_name", "program")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class StudentResponse(BaseModel):
    """Schéma de réponse pour un élève (GET /students)."""
    id: uuid.UUID
    student_number: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    program: Optional[str] = None
    section: Optional[str] = None
    year_level: Optional[str] = None
    contact: Optional[str] = None
    field: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[bool] = False
    location_preference: Optional[Dict[str, bool]] = None
    profile_picture_url: Optional[str] = None
    requirements: Optional[Any] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class StudentImportRow(BaseModel):
    """Représente une ligne valide du CSV après parsing."""
    student_number: str
    first_name: str
    last_name: str
    email: str
    program: str
    section: Optional[str] = None
    year_level: Optional[str] = None
    contact: Optional[str] = None
    company_name: Optional[str] = None
    status: bool = False


class ImportRowError(BaseModel):
    """Détail d'une ligne rejetée lors de l'import."""
    row: int
    content: str
    reason: str


class StudentImportReport(BaseModel):
    """Rapport retourné après un import CSV."""
    total_rows: int
    inserted: int
    rejected: int
    duplicates_in_file: int
    duplicates_in_db: int
    failed: int = 0
    errors: List[ImportRowError]


class BulkDeleteRequest(BaseModel):
    """Sélection d'élèves à supprimer (POST /students/bulk-delete)."""
    student_ids: List[uuid.UUID]

    @field_validator("student_ids")
    @classmethod
    def not_empty(cls, v: List[uuid.UUID]) -> List[uuid.UUID]:
        if not v:
            raise ValueError("Aucun élève sélectionné.")
        return v


class BulkDeleteFailure(BaseModel):
    student_id: uuid.UUID
    reason: str


class BulkDeleteReport(BaseModel):
    """Rapport de suppression groupée : un échec n'interrompt pas le lot."""
    deleted: List[uuid.UUID]
    failed: List[BulkDeleteFailure]


class DeletedStudentResponse(BaseModel):
    """Élève archivé (GET /deleted-students)."""
    id: uuid.UUID
    data: Dict[str, Any]
    deleted_at: Optional[datetime] = None
    deleted_by_role: Optional[str] = None

    model_config = {"from_attributes": True}


class RequirementDecision(BaseModel):
    """Décision d'un administrateur sur un document soumis."""
    status: Literal["accepted", "denied"]
    reason: Optional[str] = None
