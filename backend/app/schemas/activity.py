"""
Schémas Pydantic pour le journal d'activité.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    id: uuid.UUID
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    admin_id: Optional[str] = None
    admin_username: Optional[str] = None
    admin_role: Optional[str] = None
    timestamp: Optional[datetime] = None

    model_config = {"from_attributes": True}
