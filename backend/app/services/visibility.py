"""
Visibilité des élèves selon le rôle de l'administrateur.

- super_admin : tous les élèves
- coordinator : élèves dont le programme relève de son collège
                (restreint à ses sections s'il en a)
- adviser     : uniquement les élèves de ses sections
"""

from typing import Any, Iterable, List, Mapping, Optional

from app.schemas.session import COORDINATOR, SUPER_ADMIN, AdminSession


def _norm(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _in_sections(record: Mapping[str, Any], sections: Iterable[str]) -> bool:
    section = _norm(record.get("section"))
    return bool(section) and section in {_norm(s) for s in sections}


def college_of(program: Any, program_map: Mapping[str, str]) -> Optional[str]:
    """Code collège d'un programme (par nom ou par code de programme)."""
    if not isinstance(program, str) or not program.strip():
        return None
    if program in program_map:
        return program_map[program]
    wanted = _norm(program)
    for key, college in program_map.items():
        if _norm(key) == wanted:
            return college
    return None


def can_view(
    session: AdminSession,
    record: Mapping[str, Any],
    program_map: Optional[Mapping[str, str]] = None,
) -> bool:
    if session.role == SUPER_ADMIN:
        return True

    if session.role == COORDINATOR:
        if not session.college_code:
            return False
        college = college_of(record.get("program"), program_map or {})
        if _norm(college) != _norm(session.college_code):
            return False
        return _in_sections(record, session.sections) if session.sections else True

    return _in_sections(record, session.sections)


def visible_records(
    session: AdminSession,
    records: Iterable[Mapping[str, Any]],
    program_map: Optional[Mapping[str, str]] = None,
) -> List[Mapping[str, Any]]:
    return [r for r in records if can_view(session, r, program_map)]
