"""
Schémas Pydantic pour la consultation des documents d'un élève.
"""

import uuid
from typing import Any, List, Literal, Optional

from pydantic import BaseModel

FileType = Literal["pdf", "image", "document", "spreadsheet", "other", "unknown"]


class UploadedFile(BaseModel):
    url: str
    name: str
    file_type: FileType = "unknown"
    previewable: bool = False


class RequirementView(BaseModel):
    """Un document exigé, normalisé quel que soit son format de stockage."""
    name: str
    status: str                     # submitted, pending, accepted, denied, not_submitted
    status_label: str               # libellé affiché
    submitted_at: Optional[Any] = None
    files: List[UploadedFile] = []


class RequirementFetchResult(BaseModel):
    student_id: uuid.UUID
    source: Literal["document", "subcollection", "none"] = "none"
    requirements: List[RequirementView] = []
    error: Optional[str] = None
