"""
Service d'identité : comptes d'authentification des élèves.

La suppression est "best effort" : un compte introuvable ou une erreur
n'empêche jamais la suppression de l'élève lui-même.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.auth_account import AuthAccount

logger = logging.getLogger(__name__)


def create_account(db: Session, email: str) -> str:
    """
    Crée (ou retrouve) le compte associé à un email et retourne son uid.
    Ne commite pas : l'appelant inclut le compte dans sa propre transaction.
    """
    existing = db.execute(
        select(AuthAccount).where(func.lower(AuthAccount.email) == email.lower())
    ).scalar_one_or_none()
    if existing:
        return existing.uid

    account = AuthAccount(uid=uuid.uuid4().hex, email=email)
    db.add(account)
    return account.uid


def delete_account(db: Session, uid: Optional[str] = None, email: Optional[str] = None) -> bool:
    """Supprime un compte par uid ou, à défaut, par email. Retourne False si introuvable."""
    account = None
    if uid:
        account = db.get(AuthAccount, uid)
    if account is None and email:
        account = db.execute(
            select(AuthAccount).where(func.lower(AuthAccount.email) == email.lower())
        ).scalar_one_or_none()
    if account is None:
        return False

    db.delete(account)
    return True


def attempt_delete_account(db: Session, uid: Optional[str], email: Optional[str]) -> bool:
    """
    Tente la suppression par uid puis par email.
    Toute erreur est journalisée et convertie en False.
    """
    try:
        with db.begin_nested():
            if uid and delete_account(db, uid=uid):
                return True
            if email and delete_account(db, email=email):
                return True
    except SQLAlchemyError as exc:
        logger.warning("Suppression du compte d'authentification impossible (%s / %s) : %s", uid, email, exc)
        return False

    logger.warning("Aucun compte d'authentification trouvé pour uid=%s email=%s", uid, email)
    return False
