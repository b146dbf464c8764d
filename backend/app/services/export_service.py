"""
Export CSV de la vue élèves filtrée.
"""

import csv
import io
from typing import Any, Iterable, Mapping

EXPORT_COLUMNS = [
    ("student_number", "Student Number"),
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("program", "Program"),
    ("section", "Section"),
    ("year_level", "Year Level"),
    ("contact", "Contact"),
    ("field", "Field"),
    ("company_name", "Company"),
    ("status", "Hired"),
    ("location_preference", "Location Preference"),
]


def format_cell(value: Any) -> str:
    """Listes jointes par '; ', booléens en Yes/No, préférences → clés actives."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return "; ".join(format_cell(v) for v in value)
    if isinstance(value, Mapping):
        return "; ".join(str(k) for k, v in value.items() if v)
    return str(value)


def students_to_csv(records: Iterable[Mapping[str, Any]]) -> str:
    """CSV conforme RFC 4180 (guillemets si nécessaire, fins de ligne CRLF)."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow([label for _, label in EXPORT_COLUMNS])
    for record in records:
        writer.writerow([format_cell(record.get(key)) for key, _ in EXPORT_COLUMNS])
    return buffer.getvalue()
