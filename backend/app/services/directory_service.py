"""
Lecture de l'annuaire scolaire : classes, matières, affectations enseignants, profils.
Lecture seule, aucune écriture : ces données sont gérées par les écrans d'administration.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.school_class import SchoolClass
from app.models.subject import Subject, TeacherSubject
from app.models.user import TEACHER_ROLE, User
from app.schemas.directory import (
    ClassSummary,
    DirectorySnapshot,
    DirectorySummary,
    LevelCount,
    SubjectSummary,
    SubjectTeacherCount,
    TeacherSubjectAssignment,
)

logger = logging.getLogger(__name__)


def list_classes(db: Session) -> list[ClassSummary]:
    """Retourne toutes les classes, triées par niveau puis par nom."""
    classes = db.execute(
        select(SchoolClass).order_by(SchoolClass.level, SchoolClass.name)
    ).scalars().all()
    return [ClassSummary.model_validate(c) for c in classes]


def list_subjects(db: Session) -> list[SubjectSummary]:
    """Retourne toutes les matières, triées par nom."""
    subjects = db.execute(
        select(Subject).order_by(Subject.name)
    ).scalars().all()
    return [SubjectSummary.model_validate(s) for s in subjects]


def list_teacher_subject_assignments(db: Session) -> list[TeacherSubjectAssignment]:
    """Affectations enseignant ↔ matière dans l'ordre de création (le premier trouvé gagne)."""
    rows = db.execute(
        select(TeacherSubject).order_by(TeacherSubject.created_at, TeacherSubject.id)
    ).scalars().all()
    return [
        TeacherSubjectAssignment(
            teacher_id=r.teacher_id,
            subject_id=r.subject_id,
            is_primary=bool(r.is_primary),
        )
        for r in rows
    ]


def count_teachers(db: Session) -> int:
    return db.execute(
        select(func.count()).select_from(User).where(User.role == TEACHER_ROLE)
    ).scalar() or 0


def list_all_user_ids(db: Session) -> list[uuid.UUID]:
    """Identifiants de tous les profils (destinataires des notifications)."""
    return list(db.execute(select(User.id)).scalars().all())


def find_course(db: Session, class_id: uuid.UUID, subject_id: uuid.UUID) -> Optional[uuid.UUID]:
    """Retourne l'ID du cours (classe, matière), ou None si aucun cours n'existe."""
    return db.execute(
        select(Course.id)
        .where(
            Course.class_id == class_id,
            Course.subject_id == subject_id,
        )
        .order_by(Course.created_at)
        .limit(1)
    ).scalar()


def load_directory_snapshot(db: Session) -> DirectorySnapshot:
    """Fige l'annuaire courant pour une génération."""
    snapshot = DirectorySnapshot(
        classes=list_classes(db),
        subjects=list_subjects(db),
        assignments=list_teacher_subject_assignments(db),
        teacher_count=count_teachers(db),
    )
    logger.info(
        "Annuaire chargé : %d classes, %d matières, %d affectations, %d enseignants",
        len(snapshot.classes), len(snapshot.subjects),
        len(snapshot.assignments), snapshot.teacher_count,
    )
    return snapshot


def missing_directory_data(snapshot: DirectorySnapshot) -> Optional[str]:
    """Message bloquant si classes, matières ou enseignants manquent, sinon None."""
    missing = []
    if not snapshot.classes:
        missing.append("classes")
    if not snapshot.subjects:
        missing.append("matières")
    if snapshot.teacher_count == 0:
        missing.append("enseignants")
    if not missing:
        return None
    return (
        "Veuillez d'abord créer des classes, matières et enseignants "
        f"(manquant : {', '.join(missing)})."
    )


def get_directory_summary(db: Session) -> DirectorySummary:
    """Compteurs de l'écran de génération : totaux, classes par niveau, enseignants par matière."""
    snapshot = load_directory_snapshot(db)

    level_counts: dict[str, int] = {}
    for c in snapshot.classes:
        level_counts[c.level] = level_counts.get(c.level, 0) + 1

    subject_names = {s.id: s.name for s in snapshot.subjects}
    subject_counts: dict[str, int] = {}
    for a in snapshot.assignments:
        name = subject_names.get(a.subject_id, "Non assigné")
        subject_counts[name] = subject_counts.get(name, 0) + 1

    missing = missing_directory_data(snapshot)
    return DirectorySummary(
        total_classes=len(snapshot.classes),
        total_subjects=len(snapshot.subjects),
        total_teachers=snapshot.teacher_count,
        classes_by_level=[LevelCount(level=k, count=v) for k, v in level_counts.items()],
        teachers_by_subject=[SubjectTeacherCount(subject_name=k, count=v) for k, v in subject_counts.items()],
        ready=missing is None,
        missing=missing,
    )
