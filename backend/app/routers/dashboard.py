"""
Router du tableau de bord : vues paginées, statistiques et export CSV.
Les données proviennent des instantanés du DashboardController (app.state.dashboard).
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_admin_session, get_dashboard
from app.schemas.dashboard import (
    CompanyPage,
    DashboardStats,
    SortConfig,
    StudentFilters,
    StudentPage,
    ViewState,
    ViewStepRequest,
    ViewStepResponse,
)
from app.schemas.session import AdminSession
from app.services.activity_logger import log_activity
from app.services.dashboard import DashboardController
from app.services.export_service import students_to_csv

router = APIRouter(prefix="/api/v1/dashboard", tags=["Tableau de bord"])


def view_state_from_query(
    search: str = "",
    program: Optional[str] = None,
    field: Optional[str] = None,
    email: Optional[str] = None,
    contact: Optional[str] = None,
    hired: Optional[bool] = None,
    location_preference: Optional[str] = None,
    requirements_approved: Optional[bool] = None,
    sort_key: Optional[str] = None,
    sort_direction: Literal["asc", "desc"] = "asc",
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.PAGE_SIZE, ge=1, le=100),
) -> ViewState:
    """Reconstruit l'état de la table depuis les paramètres de requête."""
    return ViewState(
        filters=StudentFilters(
            search=search.strip(),
            program=program,
            field=field,
            email=email,
            contact=contact,
            hired=hired,
            location_preference=location_preference,
            requirements_approved=requirements_approved,
        ),
        sort=SortConfig(key=sort_key, direction=sort_direction),
        page=page,
        page_size=page_size,
    )


@router.get("/students", response_model=StudentPage, summary="Vue élèves filtrée, triée et paginée")
def students_view(
    state: ViewState = Depends(view_state_from_query),
    session: AdminSession = Depends(get_admin_session),
    dashboard: DashboardController = Depends(get_dashboard),
):
    return dashboard.student_page(session, state)


@router.post("/students/view", response_model=ViewStepResponse, summary="Appliquer une action à la vue élèves")
def students_view_step(
    data: ViewStepRequest,
    session: AdminSession = Depends(get_admin_session),
    dashboard: DashboardController = Depends(get_dashboard),
):
    """Applique l'action au réducteur et retourne le nouvel état avec la page correspondante."""
    try:
        state, page = dashboard.view_step(session, data.state, data.action)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return ViewStepResponse(state=state, page=page)


@router.get("/companies", response_model=CompanyPage, summary="Vue entreprises paginée")
def companies_view(
    state: ViewState = Depends(view_state_from_query),
    session: AdminSession = Depends(get_admin_session),
    dashboard: DashboardController = Depends(get_dashboard),
):
    return dashboard.company_page(state)


@router.get("/stats", response_model=DashboardStats, summary="Compteurs du tableau de bord")
def dashboard_stats(
    session: AdminSession = Depends(get_admin_session),
    dashboard: DashboardController = Depends(get_dashboard),
):
    """Compteurs calculés sur les élèves visibles ; `last_error` signale un rechargement en échec."""
    return dashboard.stats(session)


@router.get("/students/export", summary="Exporter la vue élèves en CSV")
def export_students(
    state: ViewState = Depends(view_state_from_query),
    db: Session = Depends(get_db),
    session: AdminSession = Depends(get_admin_session),
    dashboard: DashboardController = Depends(get_dashboard),
):
    """Toutes les lignes correspondant aux filtres (sans pagination), dans l'ordre de tri courant."""
    records = dashboard.filtered_students(session, state)
    content = students_to_csv(records)
    log_activity(db, "export_students", "student", None, {"count": len(records)}, session)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="students.csv"'},
    )
