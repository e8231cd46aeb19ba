"""
Tests unitaires pour la lecture de l'annuaire (instantané, compteurs, recherche de cours).
"""

import uuid
from unittest.mock import MagicMock, patch

from app.schemas.directory import (
    ClassSummary,
    DirectorySnapshot,
    SubjectSummary,
    TeacherSubjectAssignment,
)
from app.services.directory_service import (
    count_teachers,
    find_course,
    get_directory_summary,
    list_teacher_subject_assignments,
    missing_directory_data,
)


# --- Helpers ---

def make_snapshot(classes=None, subjects=None, assignments=None, teacher_count=3):
    return DirectorySnapshot(
        classes=classes if classes is not None else [
            ClassSummary(id=uuid.uuid4(), name="6ème A", level="6ème"),
        ],
        subjects=subjects if subjects is not None else [
            SubjectSummary(id=uuid.uuid4(), name="Maths"),
        ],
        assignments=assignments or [],
        teacher_count=teacher_count,
    )


# --- missing_directory_data ---

def test_annuaire_complet():
    assert missing_directory_data(make_snapshot()) is None


def test_annuaire_vide_liste_tous_les_manques():
    message = missing_directory_data(make_snapshot(classes=[], subjects=[], teacher_count=0))
    assert "classes, matières, enseignants" in message


# --- get_directory_summary ---

def test_compteurs_par_niveau_et_par_matiere():
    maths = SubjectSummary(id=uuid.uuid4(), name="Maths")
    snapshot = make_snapshot(
        classes=[
            ClassSummary(id=uuid.uuid4(), name="6ème A", level="6ème"),
            ClassSummary(id=uuid.uuid4(), name="6ème B", level="6ème"),
            ClassSummary(id=uuid.uuid4(), name="5ème A", level="5ème"),
        ],
        subjects=[maths],
        assignments=[
            TeacherSubjectAssignment(teacher_id=uuid.uuid4(), subject_id=maths.id),
            TeacherSubjectAssignment(teacher_id=uuid.uuid4(), subject_id=maths.id),
            TeacherSubjectAssignment(teacher_id=uuid.uuid4(), subject_id=uuid.uuid4()),
        ],
    )
    with patch("app.services.directory_service.load_directory_snapshot", return_value=snapshot):
        summary = get_directory_summary(MagicMock())

    assert summary.total_classes == 3
    assert summary.ready is True
    assert {(lv.level, lv.count) for lv in summary.classes_by_level} == {("6ème", 2), ("5ème", 1)}
    assert {(s.subject_name, s.count) for s in summary.teachers_by_subject} == {
        ("Maths", 2),
        ("Non assigné", 1),
    }


def test_resume_sans_enseignant_non_pret():
    with patch("app.services.directory_service.load_directory_snapshot",
               return_value=make_snapshot(teacher_count=0)):
        summary = get_directory_summary(MagicMock())

    assert summary.ready is False
    assert "enseignants" in summary.missing


# --- Requêtes ---

def test_count_teachers_zero_si_none():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = None
    assert count_teachers(db) == 0


def test_affectations_is_primary_null_devient_false():
    row = MagicMock(teacher_id=uuid.uuid4(), subject_id=uuid.uuid4(), is_primary=None)
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [row]

    assignments = list_teacher_subject_assignments(db)
    assert assignments[0].is_primary is False
    assert assignments[0].teacher_id == row.teacher_id


def test_find_course_absent():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = None
    assert find_course(db, uuid.uuid4(), uuid.uuid4()) is None
