"""
Tests unitaires pour le cycle de vie des élèves :
création, suppression archivée, suppression groupée, restauration et décision sur un document.
"""

import uuid
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.models.deleted_student import DeletedStudent
from app.models.requirement import RequirementSubmission
from app.models.student import Student
from app.schemas.session import AdminSession
from app.schemas.student import StudentCreate
from app.services import student_service

ADMIN = AdminSession(role="super_admin", admin_id="admin-1", username="admin")


def make_student(**kwargs) -> Student:
    """Vrai objet Student (non persisté) pour vérifier l'instantané."""
    defaults = dict(
        id=uuid.uuid4(),
        student_number="2021-0001",
        first_name="Juan",
        last_name="Dela Cruz",
        email="juan@school.edu",
        program="BSIT",
        section="IT-4A",
        status=True,
        company_name="Acme Corp",
        location_preference={"onsite": True},
        requirements=[{"name": "Curriculum Vitae", "status": "submitted"}],
        uid="uid-123",
    )
    defaults.update(kwargs)
    return Student(**defaults)


def added_of_type(db, cls):
    return [c.args[0] for c in db.add.call_args_list if isinstance(c.args[0], cls)]


# ============================================================
# create_student
# ============================================================

def test_create_student_numero_deja_utilise():
    db = MagicMock()
    db.execute.return_value.scalar_one_or_none.return_value = make_student()
    data = StudentCreate(
        student_number="2021-0001", first_name="Juan", last_name="Dela Cruz",
        email="juan@school.edu", program="BSIT",
    )

    with pytest.raises(ValueError):
        student_service.create_student(db, data, ADMIN)
    db.commit.assert_not_called()


def test_create_student_cree_compte():
    db = MagicMock()
    db.execute.return_value.scalar_one_or_none.return_value = None
    data = StudentCreate(
        student_number="2021-0005", first_name="Maria", last_name="Santos",
        email="maria@school.edu", program="BSCS",
    )

    student = student_service.create_student(db, data, ADMIN)

    assert student.student_number == "2021-0005"
    assert student.uid
    db.commit.assert_called()


# ============================================================
# delete_student
# ============================================================

def test_delete_student_archive_avant_suppression():
    """L'instantané archivé contient tous les champs d'origine et précède la suppression."""
    student = make_student()
    db = MagicMock()
    db.get.side_effect = lambda model, key: student if model is Student else None
    db.execute.return_value.scalar_one_or_none.return_value = None

    with patch.object(student_service.auth_service, "attempt_delete_account", return_value=True):
        assert student_service.delete_student(db, student.id, ADMIN) is True

    archives = added_of_type(db, DeletedStudent)
    assert len(archives) == 1
    snapshot = archives[0].data
    assert snapshot["id"] == str(student.id)
    assert snapshot["student_number"] == "2021-0001"
    assert snapshot["first_name"] == "Juan"
    assert snapshot["last_name"] == "Dela Cruz"
    assert snapshot["email"] == "juan@school.edu"
    assert snapshot["company_name"] == "Acme Corp"
    assert snapshot["status"] is True
    assert snapshot["requirements"] == [{"name": "Curriculum Vitae", "status": "submitted"}]
    assert archives[0].deleted_by_role == "super_admin"

    # Ordre : archive → flush → suppression
    names = [c[0] for c in db.method_calls]
    assert names.index("add") < names.index("flush") < names.index("delete")
    db.delete.assert_any_call(student)


def test_delete_student_introuvable():
    db = MagicMock()
    db.get.return_value = None

    assert student_service.delete_student(db, uuid.uuid4(), ADMIN) is False
    db.delete.assert_not_called()


def test_delete_student_sans_compte_continue():
    """Un compte d'authentification introuvable n'empêche pas la suppression."""
    student = make_student()
    db = MagicMock()
    db.get.side_effect = lambda model, key: student if model is Student else None
    db.execute.return_value.scalar_one_or_none.return_value = None

    assert student_service.delete_student(db, student.id, ADMIN) is True
    db.delete.assert_called_once_with(student)


def test_delete_student_erreur_compte_isolee():
    student = make_student()

    def fake_get(model, key):
        if model is Student:
            return student
        raise OperationalError("SELECT", {}, Exception("identity service down"))

    db = MagicMock()
    db.get.side_effect = fake_get

    assert student_service.delete_student(db, student.id, ADMIN) is True
    db.delete.assert_called_once_with(student)


# ============================================================
# bulk_delete_students
# ============================================================

def test_bulk_delete_isolation_des_echecs():
    ok_1, failing, ok_2, missing = uuid.uuid4(), uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

    def fake_delete(db, student_id, session, publish=True):
        if student_id == failing:
            raise OperationalError("DELETE", {}, Exception("lock timeout"))
        return student_id != missing

    db = MagicMock()
    with patch.object(student_service, "delete_student", side_effect=fake_delete):
        report = student_service.bulk_delete_students(db, [ok_1, failing, ok_2, missing], ADMIN)

    assert report.deleted == [ok_1, ok_2]
    assert [f.student_id for f in report.failed] == [failing, missing]
    assert report.failed[1].reason == "Élève introuvable."
    db.rollback.assert_called_once()


def test_bulk_delete_hors_perimetre_refuse():
    """Un adviser ne peut pas supprimer un élève d'une autre section via la suppression groupée."""
    visible = make_student(section="IT-4A")
    foreign = make_student(section="CS-9Z", student_number="2021-0099")
    students = {visible.id: visible, foreign.id: foreign}
    db = MagicMock()
    db.get.side_effect = lambda model, key: students.get(key) if model is Student else None
    db.execute.return_value.scalar_one_or_none.return_value = None
    adviser = AdminSession(role="adviser", sections=["IT-4A"])

    report = student_service.bulk_delete_students(db, [visible.id, foreign.id], adviser)

    assert report.deleted == [visible.id]
    assert report.failed[0].student_id == foreign.id
    assert report.failed[0].reason == "Élève introuvable."
    db.delete.assert_called_once_with(visible)


def test_bulk_delete_publie_une_seule_fois():
    ids = [uuid.uuid4(), uuid.uuid4(), uuid.uuid4()]
    students = {i: make_student(id=i, student_number=str(i)) for i in ids}
    db = MagicMock()
    db.get.side_effect = lambda model, key: students.get(key) if model is Student else None
    db.execute.return_value.scalar_one_or_none.return_value = None

    with patch.object(student_service.feed, "publish") as mock_publish:
        report = student_service.bulk_delete_students(db, ids, ADMIN)

    assert report.deleted == ids
    mock_publish.assert_called_once_with("students", "deleted")


def test_delete_student_publie_le_changement():
    student = make_student()
    db = MagicMock()
    db.get.side_effect = lambda model, key: student if model is Student else None
    db.execute.return_value.scalar_one_or_none.return_value = None

    with patch.object(student_service.feed, "publish") as mock_publish:
        student_service.delete_student(db, student.id, ADMIN)

    mock_publish.assert_called_once_with("students", "deleted", str(student.id))


# ============================================================
# restore_student
# ============================================================

def make_archive(**data):
    archive = MagicMock(spec=DeletedStudent)
    archive.id = uuid.uuid4()
    archive.data = {
        "id": str(archive.id),
        "student_number": "2021-0001",
        "first_name": "Juan",
        "last_name": "Dela Cruz",
        "email": "juan@school.edu",
        "status": True,
        "created_at": "2024-06-01T10:00:00",
        **data,
    }
    return archive


def test_restore_student_recree_et_retire_archive():
    archive = make_archive()
    db = MagicMock()
    db.get.return_value = archive
    db.execute.return_value.scalar_one_or_none.return_value = None

    student = student_service.restore_student(db, archive.id, ADMIN)

    assert student.id == archive.id
    assert student.student_number == "2021-0001"
    assert student.status is True
    db.delete.assert_called_once_with(archive)
    db.commit.assert_called()


def test_restore_student_numero_reattribue():
    archive = make_archive()
    db = MagicMock()
    db.get.return_value = archive
    db.execute.return_value.scalar_one_or_none.return_value = make_student()

    with pytest.raises(ValueError):
        student_service.restore_student(db, archive.id, ADMIN)
    db.delete.assert_not_called()


def test_restore_student_archive_introuvable():
    db = MagicMock()
    db.get.return_value = None
    assert student_service.restore_student(db, uuid.uuid4(), ADMIN) is None


# ============================================================
# decide_requirement
# ============================================================

def test_decide_requirement_liste():
    student = make_student(requirements=[
        {"name": "Curriculum Vitae", "status": "submitted"},
        {"name": "Medical Certificate", "status": "pending"},
    ])
    db = MagicMock()
    db.get.return_value = student

    student_service.decide_requirement(db, student.id, "curriculum vitae", "accepted", None, ADMIN)

    assert student.requirements[0]["status"] == "accepted"
    assert student.requirements[1]["status"] == "pending"
    db.commit.assert_called()


def test_decide_requirement_dictionnaire_avec_motif():
    student = make_student(requirements={"Medical Certificate": {"status": "submitted"}})
    db = MagicMock()
    db.get.return_value = student

    student_service.decide_requirement(db, student.id, "Medical Certificate", "denied", "Illisible", ADMIN)

    assert student.requirements["Medical Certificate"]["status"] == "denied"
    assert student.requirements["Medical Certificate"]["reviewReason"] == "Illisible"


def test_decide_requirement_repli_sur_soumission():
    student = make_student(requirements=None)
    submission = MagicMock(spec=RequirementSubmission)
    submission.status = "submitted"
    db = MagicMock()
    db.get.return_value = student
    db.execute.return_value.scalar_one_or_none.return_value = submission

    student_service.decide_requirement(db, student.id, "Proof of Insurance", "accepted", None, ADMIN)

    assert submission.status == "accepted"


def test_decide_requirement_document_inconnu():
    student = make_student(requirements=[])
    db = MagicMock()
    db.get.return_value = student
    db.execute.return_value.scalar_one_or_none.return_value = None

    with pytest.raises(ValueError):
        student_service.decide_requirement(db, student.id, "Unknown", "accepted", None, ADMIN)
    db.commit.assert_not_called()


def test_decide_requirement_conserve_entrees_non_conformes():
    """Les entrées qui ne sont pas des objets restent en place, seul le document visé change."""
    student = make_student(requirements=[
        "legacy-entry",
        {"name": "Curriculum Vitae", "status": "submitted"},
        None,
        {"name": "Medical Certificate", "status": "pending"},
    ])
    db = MagicMock()
    db.get.return_value = student

    student_service.decide_requirement(db, student.id, "Curriculum Vitae", "accepted", None, ADMIN)

    assert student.requirements == [
        "legacy-entry",
        {"name": "Curriculum Vitae", "status": "accepted", "reviewReason": None},
        None,
        {"name": "Medical Certificate", "status": "pending"},
    ]
