"""
Tests unitaires pour les compteurs du tableau de bord.
"""

from datetime import date, datetime, timedelta

from app.services.stats_service import compute_stats

TODAY = date(2025, 3, 1)
REQUIRED = ["Medical Certificate", "Curriculum Vitae"]


def test_compteurs_vides():
    stats = compute_stats([], [], REQUIRED, today=TODAY)
    assert stats.total_students == 0
    assert stats.total_companies == 0
    assert stats.hired_count == 0


def test_compteurs_documents():
    students = [
        {"status": True, "requirements": [
            {"name": "Medical Certificate", "status": "accepted"},
            {"name": "Curriculum Vitae", "status": "approved"},
        ]},
        {"status": False, "requirements": {
            "Medical Certificate": {"status": "submitted"},
            "Curriculum Vitae": {"status": "pending"},
            "Proof of Insurance": {"status": "denied"},
        }},
        {"status": None, "requirements": None},
    ]
    stats = compute_stats(students, [], REQUIRED, today=TODAY)

    assert stats.total_students == 3
    assert stats.hired_count == 1
    assert stats.approved_requirements == 2
    assert stats.pending_requirements == 2
    assert stats.denied_requirements == 1
    assert stats.fully_approved_students == 1


def test_compteurs_moa():
    companies = [
        {"moa": True, "moa_expiration_date": TODAY + timedelta(days=90)},
        {"moa": True, "moa_expiration_date": TODAY + timedelta(days=10)},
        {"moa": True, "moa_expiration_date": (TODAY - timedelta(days=1)).isoformat()},
        {"moa": True, "moa_expiration_date": datetime(2025, 3, 31, 12, 0)},
        {"moa": False, "moa_expiration_date": TODAY + timedelta(days=90)},
        {"moa": True, "moa_expiration_date": None},
    ]
    stats = compute_stats([], companies, REQUIRED, today=TODAY)

    assert stats.total_companies == 6
    assert stats.moa_valid == 1
    assert stats.moa_expiring_soon == 2
    assert stats.moa_expired == 1
    assert stats.moa_missing == 2
