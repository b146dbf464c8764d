"""
Schémas Pydantic pour les entreprises (lecture seule).
"""

import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel


class CompanyResponse(BaseModel):
    id: uuid.UUID
    company_name: str
    description: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    email: Optional[str] = None
    fields: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    mode_of_work: Optional[List[str]] = None
    moa: Optional[bool] = False
    moa_expiration_date: Optional[date] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
