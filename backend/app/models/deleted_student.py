"""
Archive des élèves supprimés.
La copie est écrite avant la suppression pour permettre l'audit et la restauration.
"""

import uuid
from sqlalchemy import JSON, Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class DeletedStudent(Base):
    __tablename__ = "deleted_students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)  # = ancien students.id
    data = Column(JSON, nullable=False)                 # Instantané complet avant suppression
    deleted_at = Column(DateTime, server_default=func.now())
    deleted_by_role = Column(String(50), nullable=True)
