"""
Service d'import CSV pour les élèves.
Gère le parsing, la validation, la détection de doublons et l'insertion ligne par ligne.

En-têtes reconnus (insensibles à la casse et aux espaces) :
Student Number / Student ID, First Name, Last Name (ou Name complet), Email,
Program, Section, Year Level, Contact / Contact Number, Company, Status.
"""

import csv
import io
import logging
import re
from typing import Dict, List, Optional, Set

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.events import STUDENTS, feed
from app.models.student import Student
from app.schemas.session import AdminSession
from app.schemas.student import ImportRowError, StudentImportReport, StudentImportRow
from app.services.activity_logger import log_activity

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
TRUE_VALUES = {"yes", "true", "1", "y"}

# Nom canonique → en-têtes acceptés (déjà normalisés)
COLUMN_ALIASES: Dict[str, tuple] = {
    "student_number": ("studentnumber", "studentid", "studentno", "idnumber"),
    "first_name": ("firstname", "prenom"),
    "last_name": ("lastname", "nom"),
    "name": ("name", "fullname"),
    "email": ("email", "emailaddress"),
    "program": ("program", "course"),
    "section": ("section",),
    "year_level": ("yearlevel", "year"),
    "contact": ("contactnumber", "contact", "phone"),
    "company_name": ("company", "companyname"),
    "status": ("status", "hired"),
}


def _normalize_header(raw: str) -> str:
    """Normalise un nom de colonne : minuscules, sans espaces ni séparateurs."""
    return re.sub(r"[\s_\-]+", "", raw.strip().lower())


def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") > sample.count(","):
        return ";"
    return ","


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _build_field_map(fieldnames: List[str]) -> Dict[str, str]:
    """Associe chaque colonne canonique au nom d'en-tête réel du fichier."""
    normalized = {_normalize_header(f): f for f in fieldnames if f}
    field_map: Dict[str, str] = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                field_map[canonical] = normalized[alias]
                break
    return field_map


def _empty_report(reason: str, content: str = "") -> StudentImportReport:
    return StudentImportReport(
        total_rows=0, inserted=0, rejected=0,
        duplicates_in_file=0, duplicates_in_db=0,
        errors=[ImportRowError(row=0, content=content, reason=reason)],
    )


def _split_full_name(full: str) -> tuple:
    parts = full.split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def parse_and_import_csv(
    content: bytes, db: Session, session: Optional[AdminSession] = None
) -> StudentImportReport:
    """
    Parse le CSV, valide chaque ligne, détecte les doublons et insère.

    Règles :
    - Colonnes requises : numéro étudiant, nom + prénom (ou nom complet), email, programme
    - Une ligne invalide est rejetée sans interrompre l'import
    - Doublon intra-fichier : même numéro étudiant (insensible à la casse)
    - Doublon BDD : idem contre les élèves existants
    - Chaque insertion a son propre savepoint : un échec n'annule pas les autres
    """
    try:
        text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    except UnicodeDecodeError:
        return _empty_report("Encodage invalide : le fichier doit être en UTF-8")

    lines = text.splitlines()
    separator = _detect_separator(lines[0] if lines else "")
    reader = csv.DictReader(io.StringIO(text), delimiter=separator)

    if not reader.fieldnames:
        return _empty_report("Fichier CSV vide ou illisible")

    field_map = _build_field_map(reader.fieldnames)
    missing = []
    if "student_number" not in field_map:
        missing.append("Student Number")
    if "name" not in field_map and not ("first_name" in field_map and "last_name" in field_map):
        missing.append("First Name / Last Name")
    if "email" not in field_map:
        missing.append("Email")
    if "program" not in field_map:
        missing.append("Program")
    if missing:
        return _empty_report(f"Colonnes manquantes : {', '.join(missing)}", str(reader.fieldnames))

    def cell(row: dict, name: str) -> str:
        header = field_map.get(name)
        return (row.get(header) or "").strip() if header else ""

    valid_rows: List[StudentImportRow] = []
    row_numbers: Dict[str, int] = {}
    errors: List[ImportRowError] = []
    seen_in_file: Set[str] = set()
    duplicates_in_file = 0
    total_rows = 0

    for row_num, row in enumerate(reader, start=2):  # ligne 1 = header
        values = {name: cell(row, name) for name in COLUMN_ALIASES}

        # Ligne vide
        if not any(values.values()):
            continue
        total_rows += 1

        first_name, last_name = values["first_name"], values["last_name"]
        if values["name"] and not first_name and not last_name:
            first_name, last_name = _split_full_name(values["name"])

        number = values["student_number"]
        summary = f"{number}, {last_name}, {first_name}"

        if not number:
            errors.append(ImportRowError(row=row_num, content=summary, reason="Numéro étudiant manquant"))
            continue
        if not first_name or not last_name:
            errors.append(ImportRowError(row=row_num, content=summary, reason="Nom ou prénom manquant"))
            continue
        if not values["email"]:
            errors.append(ImportRowError(row=row_num, content=summary, reason="Email manquant"))
            continue
        if not EMAIL_REGEX.match(values["email"]):
            errors.append(ImportRowError(
                row=row_num, content=f"{summary}, {values['email']}",
                reason=f"Format email invalide : {values['email']}",
            ))
            continue
        if not values["program"]:
            errors.append(ImportRowError(row=row_num, content=summary, reason="Programme manquant"))
            continue

        # Doublon intra-fichier
        key = number.lower()
        if key in seen_in_file:
            duplicates_in_file += 1
            errors.append(ImportRowError(row=row_num, content=summary, reason="Doublon dans le fichier CSV"))
            continue
        seen_in_file.add(key)
        row_numbers[key] = row_num

        valid_rows.append(StudentImportRow(
            student_number=number,
            first_name=first_name,
            last_name=last_name,
            email=values["email"],
            program=values["program"],
            section=values["section"] or None,
            year_level=values["year_level"] or None,
            contact=values["contact"] or None,
            company_name=values["company_name"] or None,
            status=_parse_bool(values["status"]),
        ))

    report = StudentImportReport(
        total_rows=total_rows,
        inserted=0,
        rejected=len(errors),
        duplicates_in_file=duplicates_in_file,
        duplicates_in_db=0,
        errors=errors,
    )
    if not valid_rows:
        return report

    # Détection doublons contre la BDD (batch query)
    existing = db.execute(
        select(func.lower(Student.student_number)).where(
            func.lower(Student.student_number).in_([r.student_number.lower() for r in valid_rows])
        )
    ).fetchall()
    existing_set = {row[0] for row in existing}

    for student in valid_rows:
        key = student.student_number.lower()
        if key in existing_set:
            report.duplicates_in_db += 1
            errors.append(ImportRowError(
                row=row_numbers[key],
                content=f"{student.student_number}, {student.last_name}, {student.first_name}",
                reason="Élève déjà présent en base de données",
            ))
            continue

        # Insertion isolée : l'échec d'une ligne n'annule pas les précédentes
        try:
            with db.begin_nested():
                db.add(Student(**student.model_dump()))
                db.flush()
            report.inserted += 1
        except SQLAlchemyError as exc:
            report.failed += 1
            logger.error("Import de l'élève %s impossible : %s", student.student_number, exc)
            errors.append(ImportRowError(
                row=row_numbers[key],
                content=f"{student.student_number}, {student.last_name}, {student.first_name}",
                reason=f"Échec de l'enregistrement : {exc.__class__.__name__}",
            ))

    # Le modèle pydantic a copié la liste à la construction
    report.errors = errors
    report.rejected = len(errors)
    if report.inserted:
        db.commit()
        log_activity(db, "import_students", "student", None, {"inserted": report.inserted}, session)
        feed.publish(STUDENTS, "imported")

    logger.info(
        "Import CSV : %d lignes, %d insérés, %d rejetés (%d doublons fichier, %d doublons BDD, %d échecs)",
        report.total_rows, report.inserted, report.rejected,
        report.duplicates_in_file, report.duplicates_in_db, report.failed,
    )
    return report
