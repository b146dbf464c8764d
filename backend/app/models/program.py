"""
Programmes d'études et leur rattachement à un collège (code institutionnel).
Utilisé pour restreindre la visibilité des coordinateurs.
"""

from sqlalchemy import Column, Integer, String

from app.database import Base


class Program(Base):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    program_name = Column(String(255), unique=True, nullable=False)
    program_code = Column(String(50), nullable=True)
    college_code = Column(String(20), nullable=False)
