"""
Modèle SQLAlchemy pour les entreprises partenaires.
Lecture seule côté tableau de bord élèves.
"""

import uuid
from sqlalchemy import JSON, Boolean, Column, Date, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    website = Column(String(500), nullable=True)
    address = Column(String(500), nullable=True)
    email = Column(String(255), nullable=True)
    fields = Column(JSON, nullable=True)        # liste de domaines
    skills = Column(JSON, nullable=True)        # liste de compétences requises
    mode_of_work = Column(JSON, nullable=True)  # ["On-site", "Remote", "Hybrid"]
    moa = Column(Boolean, default=False)
    moa_expiration_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
