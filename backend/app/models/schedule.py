"""
Modèles SQLAlchemy pour la génération et la publication des emplois du temps.

Cycle de vie d'un emploi du temps généré : draft → published (jamais de retour arrière,
jamais de suppression : l'historique est conservé).
"""

import uuid
from sqlalchemy import Column, DateTime, ForeignKey, Integer, SmallInteger, String, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from app.database import Base

STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"

ACTIVE_DRAFT_ID = 1


class ScheduleGenerationConfig(Base):
    """Paramètres utilisés pour une tentative de génération (jamais modifiés après insertion)."""
    __tablename__ = "schedule_generation_configs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    school_year = Column(String(20), nullable=False)
    start_time_weekdays = Column(String(5), nullable=False)   # "HH:MM"
    end_time_weekdays = Column(String(5), nullable=False)
    start_time_wednesday = Column(String(5), nullable=False)
    end_time_wednesday = Column(String(5), nullable=False)
    course_duration_minutes = Column(Integer, nullable=False, default=55)
    break_duration_minutes = Column(Integer, nullable=False, default=10)
    lunch_start = Column(String(5), nullable=False)
    lunch_end = Column(String(5), nullable=False)
    total_rooms = Column(Integer, nullable=False)
    room_allocation = Column(String(20), nullable=False, default="round_robin")
    generated_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    generated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class GeneratedSchedule(Base):
    """Proposition d'emploi du temps : la liste des créneaux est stockée en JSONB."""
    __tablename__ = "generated_schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    config_id = Column(UUID(as_uuid=True), ForeignKey("schedule_generation_configs.id"), nullable=True)
    school_year = Column(String(20), nullable=False)
    schedule_data = Column(JSONB, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=STATUS_DRAFT)  # draft, published
    created_at = Column(DateTime, server_default=func.now())
    published_at = Column(DateTime, nullable=True)
    published_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)


class ActiveScheduleDraft(Base):
    """
    Pointeur unique (id = 1) vers le seul brouillon publiable.
    Une nouvelle génération remplace le pointeur, une publication le remet à NULL.
    """
    __tablename__ = "active_schedule_drafts"

    id = Column(Integer, primary_key=True, default=ACTIVE_DRAFT_ID)
    generated_schedule_id = Column(
        UUID(as_uuid=True), ForeignKey("generated_schedules.id"), nullable=True
    )
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Schedule(Base):
    """Créneau canonique visible par tous les tableaux de bord."""
    __tablename__ = "schedules"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(UUID(as_uuid=True), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)  # 1 = lundi ... 5 = vendredi
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    room = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
