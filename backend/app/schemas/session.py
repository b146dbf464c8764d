"""
Session administrateur transmise par le frontal via en-têtes HTTP.
"""

from typing import List, Optional

from pydantic import BaseModel, field_validator

SUPER_ADMIN = "super_admin"
COORDINATOR = "coordinator"
ADVISER = "adviser"

ROLES = {SUPER_ADMIN, COORDINATOR, ADVISER}


class AdminSession(BaseModel):
    """Identité et périmètre de l'administrateur connecté."""
    role: str = ADVISER
    admin_id: Optional[str] = None
    username: Optional[str] = None
    sections: List[str] = []
    college_code: Optional[str] = None

    @field_validator("role")
    @classmethod
    def normalize_role(cls, v: str) -> str:
        role = (v or "").strip().lower()
        # 'admin' est l'ancien nom du super administrateur
        if role == "admin":
            return SUPER_ADMIN
        if role not in ROLES:
            return ADVISER
        return role

    @field_validator("sections")
    @classmethod
    def clean_sections(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]
