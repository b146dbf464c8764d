"""
Tests unitaires pour la consultation des documents exigés :
normalisation des statuts et fichiers, type de fichier, repli sur les soumissions
et classification des erreurs.
"""

import uuid
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.models.student import Student
from app.services.requirement_service import (
    NETWORK_ERROR_MESSAGE,
    all_required_approved,
    classify_fetch_error,
    fetch_requirements,
    find_file,
    format_status,
    infer_file_type,
    iter_requirements,
    normalize_status,
    normalize_uploaded_files,
)


# ============================================================
# Statuts
# ============================================================

def test_normalize_status_alias():
    assert normalize_status("Approved") == "accepted"
    assert normalize_status("rejected") == "denied"
    assert normalize_status(None) == "not_submitted"
    assert normalize_status(" Pending ") == "pending"


def test_format_status():
    assert format_status("submitted") == "Submitted"
    assert format_status("not_submitted") == "Not Submitted"
    assert format_status("accepted") == "Accepted"
    assert format_status("weird") == "Weird"


def test_iter_requirements_dictionnaire():
    raw = {"Medical Certificate": {"status": "accepted"}, "invalid": "x"}
    items = iter_requirements(raw)
    assert items == [{"name": "Medical Certificate", "status": "accepted"}]


def test_all_required_approved_insensible_casse():
    raw = [{"title": "medical certificate", "status": "accepted"}]
    assert all_required_approved(raw, ["Medical Certificate"])
    assert not all_required_approved(raw, ["Medical Certificate", "Curriculum Vitae"])


# ============================================================
# Fichiers
# ============================================================

def test_infer_file_type():
    assert infer_file_type("https://cdn.example.com/docs/cert.PDF") == "pdf"
    assert infer_file_type("data:image/png;base64,iVBORw0KGgo") == "image"
    assert infer_file_type("https://x.com/cv.docx") == "document"
    assert infer_file_type("https://x.com/grades.xlsx") == "spreadsheet"
    assert infer_file_type("https://x.com/archive.zip") == "other"
    assert infer_file_type("") == "unknown"


def test_uploaded_files_liste_de_chaines():
    files = normalize_uploaded_files({"uploadedFiles": ["https://x.com/files/medical%20cert.pdf"]})
    assert len(files) == 1
    assert files[0].name == "medical cert.pdf"
    assert files[0].file_type == "pdf"
    assert files[0].previewable is True


def test_uploaded_files_dictionnaire():
    files = normalize_uploaded_files({"uploadedFiles": {
        "a": {"fileUrl": "https://x.com/a.png", "fileName": "photo.png"},
        "b": {"name": "sans url"},
    }})
    assert [(f.url, f.name) for f in files] == [("https://x.com/a.png", "photo.png")]


def test_uploaded_files_champ_direct():
    files = normalize_uploaded_files({"documentUrl": "https://x.com/moa.doc"})
    assert files[0].file_type == "document"
    assert files[0].previewable is False


def test_uploaded_files_absents():
    assert normalize_uploaded_files({"status": "pending"}) == []
    assert normalize_uploaded_files(None) == []


# ============================================================
# Récupération
# ============================================================

def make_student(requirements):
    s = MagicMock(spec=Student)
    s.id = uuid.uuid4()
    s.requirements = requirements
    return s


def test_fetch_depuis_le_champ_eleve():
    db = MagicMock()
    db.get.return_value = make_student([
        {"name": "Curriculum Vitae", "status": "approved", "fileUrl": "https://x.com/cv.pdf"},
    ])
    result = fetch_requirements(db, uuid.uuid4())

    assert result.source == "document"
    assert result.error is None
    assert result.requirements[0].status == "accepted"
    assert result.requirements[0].status_label == "Accepted"
    db.execute.assert_not_called()


def test_fetch_repli_sur_soumissions():
    row = MagicMock()
    row.name = "Medical Certificate"
    row.status = "submitted"
    row.uploaded_files = ["https://x.com/med.jpg"]
    row.submitted_at = None

    db = MagicMock()
    db.get.return_value = make_student(None)
    db.execute.return_value.scalars.return_value.all.return_value = [row]

    result = fetch_requirements(db, uuid.uuid4())
    assert result.source == "subcollection"
    assert result.requirements[0].name == "Medical Certificate"
    assert result.requirements[0].files[0].file_type == "image"


def test_fetch_eleve_inconnu_liste_vide():
    db = MagicMock()
    db.get.return_value = None
    result = fetch_requirements(db, uuid.uuid4())
    assert result.requirements == []
    assert result.error is None
    assert result.source == "none"


def test_fetch_erreur_reseau_classee():
    db = MagicMock()
    db.get.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
    result = fetch_requirements(db, uuid.uuid4())
    assert result.error == NETWORK_ERROR_MESSAGE
    assert result.requirements == []


def test_classify_autre_erreur():
    message = classify_fetch_error(Exception("permission denied for table"))
    assert message.startswith("Échec de récupération des documents")
    assert "permission denied" in message


def test_find_file_refuse_url_etrangere():
    db = MagicMock()
    db.get.return_value = make_student([{"name": "CV", "fileUrl": "https://x.com/cv.pdf"}])
    result = fetch_requirements(db, uuid.uuid4())
    assert find_file(result, "https://x.com/cv.pdf") is not None
    assert find_file(result, "https://evil.com/other.pdf") is None
