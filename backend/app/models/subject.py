"""
Modèles SQLAlchemy pour les matières et leur affectation aux enseignants.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(20), nullable=True)
    coefficient = Column(Numeric(4, 2), nullable=True)  # pondération des moyennes, sans effet sur l'emploi du temps
    created_at = Column(DateTime, server_default=func.now())


class TeacherSubject(Base):
    """Association enseignant ↔ matière (plusieurs à plusieurs)."""
    __tablename__ = "teacher_subjects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(UUID(as_uuid=True), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    is_primary = Column(Boolean, default=False)  # matière principale de l'enseignant
    created_at = Column(DateTime, server_default=func.now())
