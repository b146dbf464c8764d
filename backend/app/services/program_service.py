"""
Correspondance programme → code collège, utilisée pour le périmètre des coordinateurs.
"""

import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.program import Program

logger = logging.getLogger(__name__)


def load_program_college_map(db: Session) -> Dict[str, str]:
    """
    Indexe chaque programme par son nom et par son code.
    En cas d'erreur BDD, retourne une table vide (les coordinateurs ne voient alors rien).
    """
    try:
        programs = db.execute(select(Program)).scalars().all()
    except SQLAlchemyError as exc:
        logger.error("Impossible de charger les programmes : %s", exc)
        return {}

    mapping: Dict[str, str] = {}
    for program in programs:
        if program.program_name and program.college_code:
            mapping[program.program_name.strip()] = program.college_code
        if program.program_code and program.college_code:
            mapping[program.program_code.strip()] = program.college_code

    logger.debug("Correspondance programmes chargée : %d entrées", len(mapping))
    return mapping
