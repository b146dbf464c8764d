"""
Tests unitaires pour l'export CSV des élèves.
"""

import csv
import io

from app.services.export_service import format_cell, students_to_csv


def test_format_cell():
    assert format_cell(None) == ""
    assert format_cell(True) == "Yes"
    assert format_cell(False) == "No"
    assert format_cell(["Web", "Mobile"]) == "Web; Mobile"
    assert format_cell({"onsite": True, "remote": False, "hybrid": True}) == "onsite; hybrid"


def test_export_entetes_et_lignes():
    records = [
        {"student_number": "2021-0001", "first_name": "Juan", "last_name": "Dela Cruz",
         "company_name": "Acme, Inc.", "status": True},
        {"student_number": "2021-0002", "first_name": "Maria", "last_name": 'Santos "Mia"',
         "status": False},
    ]
    content = students_to_csv(records)

    assert content.endswith("\r\n")
    rows = list(csv.reader(io.StringIO(content)))
    assert rows[0][:3] == ["Student Number", "First Name", "Last Name"]
    assert rows[1][rows[0].index("Company")] == "Acme, Inc."
    assert rows[1][rows[0].index("Hired")] == "Yes"
    assert rows[2][2] == 'Santos "Mia"'
    assert rows[2][rows[0].index("Hired")] == "No"


def test_export_vide_entete_seule():
    rows = list(csv.reader(io.StringIO(students_to_csv([]))))
    assert len(rows) == 1
