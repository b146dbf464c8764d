"""
Contrôleur du tableau de bord.

Maintient des instantanés des élèves, des entreprises et de la correspondance
programme → collège, rechargés à chaque événement du ChangeFeed. Les vues
(pages filtrées, statistiques) sont calculées sur ces instantanés.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from app.config import settings
from app.database import SessionLocal
from app.events import COMPANIES, STUDENTS, ChangeEvent, ChangeFeed
from app.models.company import Company
from app.models.student import Student
from app.schemas.company import CompanyResponse
from app.schemas.dashboard import CompanyPage, DashboardStats, StudentFilters, StudentPage, ViewState
from app.schemas.session import AdminSession
from app.schemas.student import StudentResponse
from app.services.program_service import load_program_college_map
from app.services.stats_service import compute_stats
from app.services.table_view import apply_view, filter_records, prune_selection, reduce_view, sort_records
from app.services.visibility import visible_records

logger = logging.getLogger(__name__)

Records = List[Dict[str, Any]]

COMPANY_SEARCH_FIELDS = ("company_name", "address", "email", "fields")


def company_matches(company: Mapping[str, Any], search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    for name in COMPANY_SEARCH_FIELDS:
        value = company.get(name)
        if isinstance(value, list):
            value = " ".join(str(v) for v in value)
        if isinstance(value, str) and needle in value.lower():
            return True
    return False


class DashboardController:
    def __init__(
        self,
        load_students: Callable[[], Records],
        load_companies: Callable[[], Records],
        load_program_map: Callable[[], Dict[str, str]],
        feed: ChangeFeed,
        required_documents: Optional[Sequence[str]] = None,
    ) -> None:
        self._load_students = load_students
        self._load_companies = load_companies
        self._load_program_map = load_program_map
        self._feed = feed
        self.required_documents = list(
            settings.REQUIRED_DOCUMENTS if required_documents is None else required_documents
        )

        self._lock = threading.Lock()
        self._students: Records = []
        self._companies: Records = []
        self._program_map: Dict[str, str] = {}
        self._unsubscribers: List[Callable[[], None]] = []
        self._errors: Dict[str, str] = {}

    @property
    def last_error(self) -> Optional[str]:
        """Dernière erreur de chargement encore active (None si tout est à jour)."""
        return next(iter(self._errors.values()), None)

    @property
    def running(self) -> bool:
        return bool(self._unsubscribers)

    def start(self) -> None:
        """Abonne le contrôleur aux changements puis charge les instantanés."""
        if self.running:
            return
        self._unsubscribers = [
            self._feed.subscribe(STUDENTS, self._on_change),
            self._feed.subscribe(COMPANIES, self._on_change),
        ]
        self.refresh()
        logger.info("Tableau de bord démarré (%d élèves, %d entreprises)", len(self._students), len(self._companies))

    def stop(self) -> None:
        """Désabonne tous les listeners : plus aucune mise à jour après l'arrêt."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_change(self, event: ChangeEvent) -> None:
        if not self.running:
            return
        if event.collection == COMPANIES:
            self._refresh_companies()
        else:
            self._refresh_students()

    def refresh(self) -> None:
        self._refresh_program_map()
        self._refresh_students()
        self._refresh_companies()

    def _safe_load(self, loader: Callable[[], Any], label: str) -> Optional[Any]:
        """Exécute un chargeur ; en cas d'échec l'instantané précédent est conservé."""
        try:
            data = loader()
        except Exception as exc:
            logger.error("Chargement des %s impossible : %s", label, exc)
            self._errors[label] = f"Chargement des {label} impossible : {exc}"
            return None
        self._errors.pop(label, None)
        return data

    def _refresh_students(self) -> None:
        data = self._safe_load(self._load_students, "élèves")
        if data is not None:
            with self._lock:
                self._students = list(data)

    def _refresh_companies(self) -> None:
        data = self._safe_load(self._load_companies, "entreprises")
        if data is not None:
            with self._lock:
                self._companies = list(data)

    def _refresh_program_map(self) -> None:
        data = self._safe_load(self._load_program_map, "programmes")
        if data is not None:
            with self._lock:
                self._program_map = dict(data)

    # --- Vues ---

    def visible_students(self, session: AdminSession) -> Records:
        with self._lock:
            students, program_map = list(self._students), dict(self._program_map)
        return visible_records(session, students, program_map)

    def companies(self) -> Records:
        with self._lock:
            return list(self._companies)

    def filtered_students(self, session: AdminSession, state: ViewState) -> Records:
        """Toutes les lignes visibles correspondant aux filtres, triées, sans pagination (export)."""
        filtered = filter_records(self.visible_students(session), state.filters, self.required_documents)
        return [dict(r) for r in sort_records(filtered, state.sort)]

    def student_page(self, session: AdminSession, state: ViewState) -> StudentPage:
        page = apply_view(self.visible_students(session), state, self.required_documents)
        return StudentPage(**page.model_dump())

    def view_step(self, session: AdminSession, state: ViewState, action) -> Tuple[ViewState, StudentPage]:
        """
        Applique une action du réducteur sur la page affichée puis retire de
        la sélection les élèves qui ne sont plus visibles (supprimés entre-temps).
        """
        students = self.visible_students(session)
        current = apply_view(students, state, self.required_documents)
        state = reduce_view(state, action, current.items)
        state = state.model_copy(update={"selected": prune_selection(state.selected, students)})
        page = apply_view(students, state, self.required_documents)
        return state, StudentPage(**page.model_dump())

    def company_page(self, state: ViewState) -> CompanyPage:
        """Seule la recherche texte s'applique aux entreprises."""
        companies = [c for c in self.companies() if company_matches(c, state.filters.search)]
        page = apply_view(companies, state.model_copy(update={"filters": StudentFilters()}))
        return CompanyPage(**page.model_dump())

    def stats(self, session: AdminSession) -> DashboardStats:
        stats = compute_stats(self.visible_students(session), self.companies(), self.required_documents)
        stats.last_error = self.last_error
        return stats


# --- Chargeurs par défaut (BDD) ---

def load_students_snapshot() -> Records:
    db = SessionLocal()
    try:
        rows = db.query(Student).order_by(Student.last_name, Student.first_name).all()
        return [StudentResponse.model_validate(r).model_dump() for r in rows]
    finally:
        db.close()


def load_companies_snapshot() -> Records:
    db = SessionLocal()
    try:
        rows = db.query(Company).order_by(Company.company_name).all()
        return [CompanyResponse.model_validate(r).model_dump() for r in rows]
    finally:
        db.close()


def load_program_map_snapshot() -> Dict[str, str]:
    db = SessionLocal()
    try:
        return load_program_college_map(db)
    finally:
        db.close()


def create_dashboard(feed: ChangeFeed) -> DashboardController:
    return DashboardController(
        load_students=load_students_snapshot,
        load_companies=load_companies_snapshot,
        load_program_map=load_program_map_snapshot,
        feed=feed,
    )
