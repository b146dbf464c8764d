"""
Compteurs dérivés du tableau de bord, recalculés depuis les instantanés.
"""

from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from app.schemas.dashboard import DashboardStats
from app.services.requirement_service import (
    ACCEPTED,
    DENIED,
    PENDING,
    SUBMITTED,
    all_required_approved,
    iter_requirements,
    normalize_status,
)

MOA_EXPIRING_DAYS = 30


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def compute_stats(
    students: Sequence[Mapping[str, Any]],
    companies: Sequence[Mapping[str, Any]],
    required_documents: Sequence[str] = (),
    today: Optional[date] = None,
) -> DashboardStats:
    stats = DashboardStats(
        total_students=len(students),
        total_companies=len(companies),
    )

    for student in students:
        if student.get("status") is True:
            stats.hired_count += 1

        for requirement in iter_requirements(student.get("requirements")):
            status = normalize_status(requirement.get("status"))
            if status in (SUBMITTED, PENDING):
                stats.pending_requirements += 1
            elif status == ACCEPTED:
                stats.approved_requirements += 1
            elif status == DENIED:
                stats.denied_requirements += 1

        if required_documents and all_required_approved(student.get("requirements"), required_documents):
            stats.fully_approved_students += 1

    _count_moa(stats, companies, today or date.today())
    return stats


def _count_moa(stats: DashboardStats, companies: Iterable[Mapping[str, Any]], today: date) -> None:
    """MOA valide, expirant sous 30 jours, expiré, ou absent."""
    for company in companies:
        expiration = _as_date(company.get("moa_expiration_date"))
        if not company.get("moa") or expiration is None:
            stats.moa_missing += 1
            continue

        days_left = (expiration - today).days
        if days_left < 0:
            stats.moa_expired += 1
        elif days_left <= MOA_EXPIRING_DAYS:
            stats.moa_expiring_soon += 1
        else:
            stats.moa_valid += 1
