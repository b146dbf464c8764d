"""
Filtrage, tri et pagination des tables du tableau de bord.

Fonctions pures sur des instantanés (listes de dictionnaires) : aucune
dépendance à la BDD, l'état de la vue évolue uniquement via `reduce_view`.
"""

import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from app.schemas.dashboard import (
    ClearFilters,
    ClearSelection,
    Page,
    SelectPage,
    SetFilters,
    SetPage,
    SetSearch,
    SortConfig,
    StudentFilters,
    ToggleSelection,
    ToggleSort,
    ViewState,
)
from app.services.requirement_service import all_required_approved

SEARCH_FIELDS = ("first_name", "last_name", "program")
SUBSTRING_FILTERS = ("program", "field", "email", "contact")


def _contains(value: Any, needle: str) -> bool:
    return isinstance(value, str) and needle.lower() in value.lower()


def matches_filters(
    record: Mapping[str, Any],
    filters: StudentFilters,
    required_documents: Sequence[str] = (),
) -> bool:
    """Conjonction des prédicats actifs ; un prédicat vide est ignoré."""
    if filters.search:
        if not any(_contains(record.get(f), filters.search) for f in SEARCH_FIELDS):
            return False

    for name in SUBSTRING_FILTERS:
        needle = getattr(filters, name)
        if needle and not _contains(record.get(name), needle):
            return False

    if filters.hired is not None:
        hired = record.get("status") is True
        if hired != filters.hired:
            return False

    if filters.location_preference:
        preference = record.get("location_preference")
        if not isinstance(preference, Mapping):
            return False
        if not preference.get(filters.location_preference.strip().lower()):
            return False

    if filters.requirements_approved is not None:
        approved = all_required_approved(record.get("requirements"), required_documents)
        if approved != filters.requirements_approved:
            return False

    return True


def filter_records(
    records: Iterable[Mapping[str, Any]],
    filters: StudentFilters,
    required_documents: Sequence[str] = (),
) -> List[Mapping[str, Any]]:
    return [r for r in records if matches_filters(r, filters, required_documents)]


def _sort_value(value: Any):
    """
    Coercition par type : listes jointes, chaînes en minuscules, None → "".
    Le rang évite toute comparaison entre types incompatibles.
    """
    if isinstance(value, (list, tuple)):
        value = ", ".join("" if v is None else str(v) for v in value)
    if value is None:
        value = ""
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, (int, float)):
        return (0, value)
    if isinstance(value, str):
        return (1, value.lower())
    return (1, str(value).lower())


def sort_records(records: Iterable[Mapping[str, Any]], sort: Optional[SortConfig]) -> List[Mapping[str, Any]]:
    """Tri stable sur une seule clé ; sans clé l'ordre d'entrée est conservé."""
    records = list(records)
    if sort is None or not sort.key:
        return records
    return sorted(
        records,
        key=lambda r: _sort_value(r.get(sort.key)),
        reverse=sort.direction == "desc",
    )


def paginate(records: Sequence[Mapping[str, Any]], page: int, page_size: int) -> Page:
    """Découpage par décalage ; page 1-indexée."""
    total_items = len(records)
    total_pages = math.ceil(total_items / page_size) if page_size > 0 else 0
    page = max(page, 1)
    start = (page - 1) * page_size
    return Page(
        items=[dict(r) for r in records[start:start + page_size]],
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )


def apply_view(
    records: Iterable[Mapping[str, Any]],
    state: ViewState,
    required_documents: Sequence[str] = (),
) -> Page:
    """Filtre, trie puis pagine. Une page hors limites est ramenée à la dernière page."""
    filtered = filter_records(records, state.filters, required_documents)
    ordered = sort_records(filtered, state.sort)
    total_pages = math.ceil(len(ordered) / state.page_size)
    page = min(state.page, total_pages) if total_pages else 1
    return paginate(ordered, page, state.page_size)


def reduce_view(state: ViewState, action, page_items: Iterable[Mapping[str, Any]] = ()) -> ViewState:
    """
    Réducteur pur : retourne un nouvel état, l'état reçu n'est jamais modifié.
    Toute modification de la recherche ou des filtres ramène à la page 1.
    `page_items` : lignes de la page affichée, utilisées par SelectPage.
    """
    if isinstance(action, SetSearch):
        filters = state.filters.model_copy(update={"search": action.query.strip()})
        return state.model_copy(update={"filters": filters, "page": 1})

    if isinstance(action, SetFilters):
        # La recherche texte est pilotée par SetSearch
        filters = action.filters.model_copy(update={"search": state.filters.search})
        return state.model_copy(update={"filters": filters, "page": 1})

    if isinstance(action, ClearFilters):
        return state.model_copy(update={"filters": StudentFilters(search=state.filters.search), "page": 1})

    if isinstance(action, ToggleSort):
        if state.sort.key == action.key:
            direction = "desc" if state.sort.direction == "asc" else "asc"
        else:
            direction = "asc"
        return state.model_copy(update={"sort": SortConfig(key=action.key, direction=direction)})

    if isinstance(action, SetPage):
        return state.model_copy(update={"page": max(action.page, 1)})

    if isinstance(action, ToggleSelection):
        return state.model_copy(update={"selected": toggle_selection(state.selected, action.id)})

    if isinstance(action, SelectPage):
        added = [i for i in select_all(page_items) if i not in state.selected]
        return state.model_copy(update={"selected": [*state.selected, *added]})

    if isinstance(action, ClearSelection):
        return state.model_copy(update={"selected": []})

    raise ValueError(f"Action inconnue : {action!r}")


# --- Sélection de lignes ---

def toggle_selection(selected: Sequence[str], record_id: str) -> List[str]:
    if record_id in selected:
        return [s for s in selected if s != record_id]
    return [*selected, record_id]


def select_all(page_items: Iterable[Mapping[str, Any]]) -> List[str]:
    return [str(item["id"]) for item in page_items]


def prune_selection(selected: Sequence[str], records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Retire de la sélection les lignes qui ont disparu de l'instantané."""
    present = {str(r.get("id")) for r in records}
    return [s for s in selected if s in present]
