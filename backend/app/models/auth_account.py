"""
Comptes d'authentification des élèves (service d'identité).
"""

from sqlalchemy import Column, DateTime, String, func

from app.database import Base


class AuthAccount(Base):
    __tablename__ = "auth_accounts"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
