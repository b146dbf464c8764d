"""
Dépendances FastAPI partagées : session administrateur et contrôleur du tableau de bord.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from app.schemas.session import SUPER_ADMIN, AdminSession


def get_admin_session(
    x_admin_role: Optional[str] = Header(default=None),
    x_admin_id: Optional[str] = Header(default=None),
    x_admin_username: Optional[str] = Header(default=None),
    x_admin_sections: Optional[str] = Header(default=None),
    x_admin_college: Optional[str] = Header(default=None),
) -> AdminSession:
    """
    Reconstruit la session administrateur depuis les en-têtes.
    Les sections sont transmises séparées par des virgules.
    """
    if not x_admin_role:
        raise HTTPException(status_code=401, detail="Session administrateur absente.")

    sections = x_admin_sections.split(",") if x_admin_sections else []
    return AdminSession(
        role=x_admin_role,
        admin_id=x_admin_id,
        username=x_admin_username,
        sections=sections,
        college_code=x_admin_college or None,
    )


def require_super_admin(session: AdminSession = Depends(get_admin_session)) -> AdminSession:
    """Réservé au super administrateur : archives, journal d'activité, migration des avatars."""
    if session.role != SUPER_ADMIN:
        raise HTTPException(status_code=403, detail="Action réservée au super administrateur.")
    return session


def get_dashboard(request: Request):
    """Contrôleur du tableau de bord créé au démarrage (voir app.main.lifespan)."""
    return request.app.state.dashboard
