"""
Soumissions de documents stockées ligne par ligne.
Source de repli quand le champ students.requirements est vide.
"""

import uuid
from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class RequirementSubmission(Base):
    __tablename__ = "requirement_submissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    status = Column(String(30), nullable=True)  # submitted, pending, accepted, denied
    uploaded_files = Column(JSON, nullable=True)
    submitted_at = Column(DateTime, server_default=func.now())
