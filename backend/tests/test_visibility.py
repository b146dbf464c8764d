"""
Tests unitaires pour la visibilité des élèves selon le rôle de l'administrateur.
"""

from app.schemas.session import ADVISER, COORDINATOR, SUPER_ADMIN, AdminSession
from app.services.visibility import can_view, college_of, visible_records

PROGRAMS = {
    "Bachelor of Science in Information Technology": "CCS",
    "BSIT": "CCS",
    "Bachelor of Science in Nursing": "CON",
}

STUDENTS = [
    {"id": "1", "program": "BSIT", "section": "IT-4A"},
    {"id": "2", "program": "BSIT", "section": "IT-4B"},
    {"id": "3", "program": "Bachelor of Science in Nursing", "section": "NU-4A"},
    {"id": "4", "program": "bachelor of science in information technology", "section": " it-4a "},
    {"id": "5", "program": "Unknown", "section": None},
]


def ids(records):
    return [r["id"] for r in records]


# ============================================================
# Session
# ============================================================

def test_role_admin_devient_super_admin():
    assert AdminSession(role="admin").role == SUPER_ADMIN


def test_role_inconnu_devient_adviser():
    assert AdminSession(role="guest").role == ADVISER


def test_sections_nettoyees():
    session = AdminSession(role="adviser", sections=[" IT-4A ", "", "  "])
    assert session.sections == ["IT-4A"]


# ============================================================
# Rôles
# ============================================================

def test_super_admin_voit_tout():
    session = AdminSession(role=SUPER_ADMIN)
    assert ids(visible_records(session, STUDENTS, PROGRAMS)) == ["1", "2", "3", "4", "5"]


def test_adviser_limite_a_ses_sections():
    session = AdminSession(role=ADVISER, sections=["IT-4A"])
    assert ids(visible_records(session, STUDENTS, PROGRAMS)) == ["1", "4"]


def test_adviser_sans_section_ne_voit_rien():
    session = AdminSession(role=ADVISER)
    assert visible_records(session, STUDENTS, PROGRAMS) == []


def test_adviser_ne_voit_jamais_hors_sections():
    """Quelle que soit la combinaison de sections, aucun élève hors périmètre n'est visible."""
    for sections in (["IT-4A"], ["IT-4B", "NU-4A"], ["XX"]):
        session = AdminSession(role=ADVISER, sections=sections)
        allowed = {s.lower() for s in sections}
        for record in visible_records(session, STUDENTS, PROGRAMS):
            assert record["section"].strip().lower() in allowed


def test_coordinator_limite_a_son_college():
    session = AdminSession(role=COORDINATOR, college_code="CCS")
    assert ids(visible_records(session, STUDENTS, PROGRAMS)) == ["1", "2", "4"]


def test_coordinator_avec_sections():
    session = AdminSession(role=COORDINATOR, college_code="CCS", sections=["IT-4B"])
    assert ids(visible_records(session, STUDENTS, PROGRAMS)) == ["2"]


def test_coordinator_sans_college_ne_voit_rien():
    session = AdminSession(role=COORDINATOR)
    assert not can_view(session, STUDENTS[0], PROGRAMS)


def test_college_of_insensible_casse():
    assert college_of("bsit", PROGRAMS) == "CCS"
    assert college_of("Unknown", PROGRAMS) is None
    assert college_of(None, PROGRAMS) is None
