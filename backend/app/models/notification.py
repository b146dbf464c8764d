"""
Modèle SQLAlchemy pour les notifications envoyées aux élèves.
La cible est l'une des trois variantes : ALL, STUDENTS, SECTION.
"""

import uuid
from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    message = Column(Text, nullable=False)
    target_type = Column(String(20), nullable=False, default="ALL")
    target_student_ids = Column(JSON, nullable=True)
    target_section = Column(String(50), nullable=True)
    read = Column(Boolean, default=False)
    sent_by = Column(String(100), nullable=True)
    timestamp = Column(DateTime, server_default=func.now(), index=True)
