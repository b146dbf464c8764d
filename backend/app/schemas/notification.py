"""
Schémas Pydantic pour les notifications.
Les trois modes de ciblage sont des variantes typées (discriminant `kind`).
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class AllStudentsTarget(BaseModel):
    kind: Literal["all"] = "all"


class StudentsTarget(BaseModel):
    kind: Literal["students"] = "students"
    student_ids: List[uuid.UUID]

    @field_validator("student_ids")
    @classmethod
    def not_empty(cls, v: List[uuid.UUID]) -> List[uuid.UUID]:
        if not v:
            raise ValueError("Au moins un élève doit être sélectionné.")
        # Dédoublonnage en conservant l'ordre
        return list(dict.fromkeys(v))


class SectionTarget(BaseModel):
    kind: Literal["section"] = "section"
    section: str

    @field_validator("section")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("La section ne peut pas être vide.")
        return v.strip()


NotificationTarget = Annotated[
    Union[AllStudentsTarget, StudentsTarget, SectionTarget],
    Field(discriminator="kind"),
]


class NotificationCreate(BaseModel):
    """Corps de POST /notifications."""
    message: str
    target: NotificationTarget = AllStudentsTarget()

    @field_validator("message")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le message ne peut pas être vide.")
        return v.strip()


class NotificationResponse(BaseModel):
    id: uuid.UUID
    message: str
    target_type: str
    target_student_ids: Optional[List[str]] = None
    target_section: Optional[str] = None
    read: Optional[bool] = False
    sent_by: Optional[str] = None
    timestamp: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NotificationSendResult(BaseModel):
    notification: NotificationResponse
    recipient_count: int
    pruned: int
