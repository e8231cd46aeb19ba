"""
Schémas Pydantic pour l'instantané de l'annuaire (classes, matières, affectations enseignants).
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel


class ClassSummary(BaseModel):
    id: uuid.UUID
    name: str
    level: str

    model_config = {"from_attributes": True}


class SubjectSummary(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class TeacherSubjectAssignment(BaseModel):
    teacher_id: uuid.UUID
    subject_id: uuid.UUID
    is_primary: bool = False

    model_config = {"from_attributes": True}


class DirectorySnapshot(BaseModel):
    """Annuaire figé au moment d'une génération (lecture seule)."""
    classes: List[ClassSummary]
    subjects: List[SubjectSummary]
    assignments: List[TeacherSubjectAssignment]
    teacher_count: int


class LevelCount(BaseModel):
    level: str
    count: int


class SubjectTeacherCount(BaseModel):
    subject_name: str
    count: int


class DirectorySummary(BaseModel):
    """Compteurs affichés sur l'écran de génération."""
    total_classes: int
    total_subjects: int
    total_teachers: int
    classes_by_level: List[LevelCount]
    teachers_by_subject: List[SubjectTeacherCount]
    ready: bool
    missing: Optional[str] = None
