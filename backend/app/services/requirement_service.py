"""
Service de consultation des documents exigés d'un élève.

Flux :
  1. Lire le champ `requirements` de l'élève (liste, ou dictionnaire → valeurs)
  2. Si absent : repli sur les lignes de requirement_submissions
  3. Normaliser chaque soumission (statut canonique + fichiers uniformes)

Les erreurs BDD sont classées (réseau/bloqué vs autre) et renvoyées
dans le résultat au lieu d'être levées.
"""

import logging
import uuid
from typing import Any, Iterable, List, Mapping, Optional
from urllib.parse import unquote, urlparse

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.requirement import RequirementSubmission
from app.models.student import Student
from app.schemas.requirement import RequirementFetchResult, RequirementView, UploadedFile

logger = logging.getLogger(__name__)

SUBMITTED = "submitted"
PENDING = "pending"
ACCEPTED = "accepted"
DENIED = "denied"
NOT_SUBMITTED = "not_submitted"

# Anciennes orthographes rencontrées dans les données mobiles
_STATUS_ALIASES = {
    "submitted": SUBMITTED,
    "completed": SUBMITTED,
    "yes": SUBMITTED,
    "pending": PENDING,
    "in progress": PENDING,
    "accepted": ACCEPTED,
    "approved": ACCEPTED,
    "denied": DENIED,
    "rejected": DENIED,
    "not submitted": NOT_SUBMITTED,
    "not_submitted": NOT_SUBMITTED,
    "no": NOT_SUBMITTED,
    "missing": NOT_SUBMITTED,
}

_STATUS_LABELS = {
    SUBMITTED: "Submitted",
    PENDING: "Pending",
    ACCEPTED: "Accepted",
    DENIED: "Denied",
    NOT_SUBMITTED: "Not Submitted",
}

PREVIEWABLE_TYPES = {"pdf", "image"}

NETWORK_ERROR_MESSAGE = (
    "La requête vers la base de données a été bloquée ou le réseau est indisponible. "
    "Vérifiez la connexion (ou désactivez les bloqueurs) puis réessayez."
)
_NETWORK_MARKERS = ("err_blocked_by_client", "blocked", "network", "connection refused", "timeout")


def normalize_status(status: Any) -> str:
    """Ramène un statut libre à l'une des valeurs canoniques."""
    if not status or not isinstance(status, str):
        return NOT_SUBMITTED
    return _STATUS_ALIASES.get(status.strip().lower(), status.strip().lower())


def format_status(status: Any) -> str:
    """Libellé affiché pour un statut (valeur inconnue → capitalisée)."""
    canonical = normalize_status(status)
    if canonical in _STATUS_LABELS:
        return _STATUS_LABELS[canonical]
    return canonical.capitalize()


def requirement_name(requirement: Mapping[str, Any]) -> str:
    for key in ("name", "title", "requirementType", "type", "id"):
        value = requirement.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def iter_requirements(raw: Any) -> List[Mapping[str, Any]]:
    """Le champ `requirements` peut être une liste ou un dictionnaire nom → soumission."""
    if isinstance(raw, list):
        return [r for r in raw if isinstance(r, Mapping)]
    if isinstance(raw, Mapping):
        items = []
        for key, value in raw.items():
            if isinstance(value, Mapping):
                # La clé sert de nom si la soumission n'en porte pas
                items.append(value if requirement_name(value) else {"name": key, **value})
        return items
    return []


def all_required_approved(raw_requirements: Any, required_documents: Iterable[str]) -> bool:
    """Vrai si chaque document exigé a une soumission au statut `accepted`."""
    accepted = {
        requirement_name(r).lower()
        for r in iter_requirements(raw_requirements)
        if normalize_status(r.get("status")) == ACCEPTED
    }
    return all(doc.lower() in accepted for doc in required_documents)


def infer_file_type(url: Optional[str]) -> str:
    """Déduit la catégorie d'un fichier depuis une URL, son extension ou un préfixe data:."""
    if not url:
        return "unknown"
    lowered = url.lower()

    if lowered.startswith("data:"):
        header = lowered.split(",", 1)[0]
        if "application/pdf" in header or "pdf" in header:
            return "pdf"
        if any(mime in header for mime in ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")):
            return "image"

    if ".pdf" in lowered or "application/pdf" in lowered:
        return "pdf"
    if any(marker in lowered for marker in (".jpg", ".jpeg", "image/jpeg", ".png", "image/png",
                                            ".gif", "image/gif", ".webp", "image/webp")):
        return "image"
    if ".doc" in lowered:
        return "document"
    if ".xls" in lowered:
        return "spreadsheet"
    return "other"


def _name_from_url(url: str, index: int) -> str:
    if url.startswith("data:"):
        return f"document-{index + 1}"
    path = unquote(urlparse(url).path)
    name = path.rsplit("/", 1)[-1]
    return name or f"document-{index + 1}"


def _make_file(url: str, name: Optional[str], index: int) -> UploadedFile:
    file_type = infer_file_type(url)
    return UploadedFile(
        url=url,
        name=name or _name_from_url(url, index),
        file_type=file_type,
        previewable=file_type in PREVIEWABLE_TYPES,
    )


def normalize_uploaded_files(requirement: Optional[Mapping[str, Any]]) -> List[UploadedFile]:
    """
    Uniformise les représentations des fichiers déposés :
    - `uploadedFiles` liste (chaînes ou objets {url, name})
    - `uploadedFiles` dictionnaire → valeurs
    - champ direct `fileUrl`, `file` ou `documentUrl`
    """
    if not requirement:
        return []

    uploaded = requirement.get("uploadedFiles", requirement.get("uploaded_files"))
    if isinstance(uploaded, Mapping):
        uploaded = list(uploaded.values())

    if isinstance(uploaded, list):
        files = []
        for index, entry in enumerate(uploaded):
            if isinstance(entry, str) and entry:
                files.append(_make_file(entry, None, index))
            elif isinstance(entry, Mapping):
                url = entry.get("url") or entry.get("fileUrl") or entry.get("downloadUrl")
                if url:
                    name = entry.get("name") or entry.get("fileName")
                    files.append(_make_file(url, name, index))
        return files

    direct = requirement.get("fileUrl") or requirement.get("file") or requirement.get("documentUrl")
    if isinstance(direct, str) and direct:
        return [_make_file(direct, requirement.get("fileName"), 0)]

    return []


def to_requirement_view(requirement: Mapping[str, Any]) -> RequirementView:
    status = requirement.get("status")
    return RequirementView(
        name=requirement_name(requirement),
        status=normalize_status(status),
        status_label=format_status(status),
        submitted_at=requirement.get("submittedAt") or requirement.get("submitted_at"),
        files=normalize_uploaded_files(requirement),
    )


def classify_fetch_error(exc: Exception) -> str:
    """Message affichable : réseau/bloqué ou autre erreur."""
    message = str(exc)
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return NETWORK_ERROR_MESSAGE
    if any(marker in message.lower() for marker in _NETWORK_MARKERS):
        return NETWORK_ERROR_MESSAGE
    return f"Échec de récupération des documents : {message or 'erreur inconnue'}"


def _submission_to_dict(row: RequirementSubmission) -> dict:
    return {
        "name": row.name,
        "status": row.status,
        "uploadedFiles": row.uploaded_files,
        "submittedAt": row.submitted_at,
    }


def fetch_requirements(db: Session, student_id: uuid.UUID) -> RequirementFetchResult:
    """
    Récupère les documents d'un élève : champ du document en priorité,
    puis repli sur la table requirement_submissions.
    Un élève inconnu donne une liste vide, sans erreur.
    """
    result = RequirementFetchResult(student_id=student_id)
    try:
        student = db.get(Student, student_id)
        if student is None:
            return result

        raw = iter_requirements(student.requirements)
        if raw:
            result.source = "document"
            result.requirements = [to_requirement_view(r) for r in raw]
            return result

        rows = db.execute(
            select(RequirementSubmission)
            .where(RequirementSubmission.student_id == student_id)
            .order_by(RequirementSubmission.name)
        ).scalars().all()
        if rows:
            result.source = "subcollection"
            result.requirements = [to_requirement_view(_submission_to_dict(r)) for r in rows]
    except SQLAlchemyError as exc:
        logger.error("Erreur lors de la récupération des documents de %s : %s", student_id, exc)
        result.error = classify_fetch_error(exc)
        result.requirements = []

    return result


def find_file(result: RequirementFetchResult, url: str) -> Optional[UploadedFile]:
    """Retrouve un fichier parmi ceux de l'élève (refuse toute URL étrangère)."""
    for requirement in result.requirements:
        for uploaded in requirement.files:
            if uploaded.url == url:
                return uploaded
    return None
