"""
Schémas Pydantic pour la migration des avatars vers le stockage objet.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel


class AvatarMigrationItem(BaseModel):
    student_id: uuid.UUID
    success: bool
    download_url: Optional[str] = None
    error: Optional[str] = None


class AvatarMigrationReport(BaseModel):
    total: int
    migrated: int
    failed: int
    results: List[AvatarMigrationItem]
