"""
Modèle SQLAlchemy pour la table students.
Les soumissions de documents sont stockées telles quelles (JSON libre, liste ou dictionnaire),
comme les envoie l'application mobile.
"""

import uuid
from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_number = Column(String(50), unique=True, nullable=False)  # Identifiant institutionnel
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    program = Column(String(255), nullable=True)
    section = Column(String(50), nullable=True)
    year_level = Column(String(20), nullable=True)
    contact = Column(String(50), nullable=True)
    field = Column(String(255), nullable=True)
    company_name = Column(String(255), nullable=True)
    status = Column(Boolean, default=False)                 # True = embauché / placé
    location_preference = Column(JSON, nullable=True)       # {"onsite": true, "remote": false, ...}
    profile_picture_url = Column(String(1000), nullable=True)
    avatar_base64 = Column(Text, nullable=True)             # Ancien format inline, à migrer
    requirements = Column(JSON, nullable=True)
    uid = Column(String(128), nullable=True)                # Compte d'authentification associé
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
