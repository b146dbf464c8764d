"""
Schémas Pydantic pour l'état des tables du tableau de bord :
filtres, tri, pagination et actions du réducteur.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.config import settings
from app.schemas.company import CompanyResponse
from app.schemas.student import StudentResponse


class StudentFilters(BaseModel):
    """Prédicats indépendants et optionnels, combinés par conjonction."""
    search: str = ""
    program: Optional[str] = None
    field: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    hired: Optional[bool] = None
    location_preference: Optional[str] = None   # onsite, remote, hybrid...
    requirements_approved: Optional[bool] = None


class SortConfig(BaseModel):
    key: Optional[str] = None
    direction: Literal["asc", "desc"] = "asc"


class ViewState(BaseModel):
    """État complet d'une table : filtres, tri, page courante et sélection."""
    filters: StudentFilters = StudentFilters()
    sort: SortConfig = SortConfig()
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default_factory=lambda: settings.PAGE_SIZE, ge=1, le=100)
    selected: List[str] = []   # identifiants des lignes cochées


# --- Actions du réducteur ---

class SetSearch(BaseModel):
    type: Literal["set_search"] = "set_search"
    query: str = ""


class SetFilters(BaseModel):
    type: Literal["set_filters"] = "set_filters"
    filters: StudentFilters


class ClearFilters(BaseModel):
    type: Literal["clear_filters"] = "clear_filters"


class ToggleSort(BaseModel):
    type: Literal["toggle_sort"] = "toggle_sort"
    key: str


class SetPage(BaseModel):
    type: Literal["set_page"] = "set_page"
    page: int


class ToggleSelection(BaseModel):
    type: Literal["toggle_selection"] = "toggle_selection"
    id: str


class SelectPage(BaseModel):
    """Coche toutes les lignes de la page courante."""
    type: Literal["select_page"] = "select_page"


class ClearSelection(BaseModel):
    type: Literal["clear_selection"] = "clear_selection"


ViewAction = Annotated[
    Union[SetSearch, SetFilters, ClearFilters, ToggleSort, SetPage, ToggleSelection, SelectPage, ClearSelection],
    Field(discriminator="type"),
]


class Page(BaseModel):
    """Résultat brut de la pagination sur un instantané."""
    items: List[Dict[str, Any]]
    page: int
    page_size: int
    total_items: int
    total_pages: int


class StudentPage(BaseModel):
    items: List[StudentResponse]
    page: int
    page_size: int
    total_items: int
    total_pages: int


class CompanyPage(BaseModel):
    items: List[CompanyResponse]
    page: int
    page_size: int
    total_items: int
    total_pages: int


class ViewStepRequest(BaseModel):
    """Applique une action à l'état courant (POST /dashboard/students/view)."""
    state: ViewState = ViewState()
    action: ViewAction


class ViewStepResponse(BaseModel):
    state: ViewState
    page: StudentPage


class DashboardStats(BaseModel):
    """Compteurs dérivés, recalculés à chaque changement des données."""
    total_students: int = 0
    total_companies: int = 0
    hired_count: int = 0
    pending_requirements: int = 0
    approved_requirements: int = 0
    denied_requirements: int = 0
    fully_approved_students: int = 0
    moa_valid: int = 0
    moa_expiring_soon: int = 0
    moa_expired: int = 0
    moa_missing: int = 0
    last_error: Optional[str] = None
