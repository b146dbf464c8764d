"""
Router pour les entreprises partenaires (lecture seule).
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_admin_session
from app.models.company import Company
from app.schemas.company import CompanyResponse

router = APIRouter(
    prefix="/api/v1/companies",
    tags=["Entreprises"],
    dependencies=[Depends(get_admin_session)],
)


@router.get("", response_model=List[CompanyResponse], summary="Lister les entreprises")
def list_companies(db: Session = Depends(get_db)):
    """Retourne toutes les entreprises triées par nom."""
    return db.execute(select(Company).order_by(Company.company_name)).scalars().all()


@router.get("/{company_id}", response_model=CompanyResponse, summary="Détail d'une entreprise")
def get_company(company_id: uuid.UUID, db: Session = Depends(get_db)):
    company = db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Entreprise introuvable.")
    return company
