"""
Schémas Pydantic pour la génération et la publication des emplois du temps.
"""

import re
import uuid
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.config import settings

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

ROOM_ALLOCATIONS = {"round_robin", "first_free"}


class GenerationConfigCreate(BaseModel):
    """Paramètres saisis par la direction avant une génération."""
    school_year: str = "2025-2026"
    start_time_weekdays: str = "07:00"
    end_time_weekdays: str = "18:00"
    start_time_wednesday: str = "07:00"
    end_time_wednesday: str = "12:00"
    course_duration_minutes: int = 55
    break_duration_minutes: int = 10
    lunch_start: str = "12:00"
    lunch_end: str = "14:00"
    total_rooms: int = 20
    room_allocation: str = "round_robin"  # round_robin, first_free

    @field_validator("school_year")
    @classmethod
    def school_year_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'année scolaire ne peut pas être vide.")
        return v.strip()

    @field_validator(
        "start_time_weekdays",
        "end_time_weekdays",
        "start_time_wednesday",
        "end_time_wednesday",
        "lunch_start",
        "lunch_end",
    )
    @classmethod
    def valid_hhmm(cls, v: str) -> str:
        v = v.strip()
        if not HHMM_PATTERN.match(v):
            raise ValueError(f"Heure invalide '{v}' (format attendu : HH:MM).")
        return v

    @field_validator("course_duration_minutes")
    @classmethod
    def positive_duration(cls, v: int) -> int:
        if v < 1:
            raise ValueError("La durée d'un cours doit être d'au moins 1 minute.")
        return v

    @field_validator("break_duration_minutes")
    @classmethod
    def non_negative_break(cls, v: int) -> int:
        if v < 0:
            raise ValueError("La durée de pause ne peut pas être négative.")
        return v

    @field_validator("total_rooms")
    @classmethod
    def rooms_in_range(cls, v: int) -> int:
        if not 1 <= v <= settings.SCHEDULE_MAX_ROOMS:
            raise ValueError(
                f"Le nombre de salles doit être compris entre 1 et {settings.SCHEDULE_MAX_ROOMS}."
            )
        return v

    @field_validator("room_allocation")
    @classmethod
    def valid_room_allocation(cls, v: str) -> str:
        if v not in ROOM_ALLOCATIONS:
            raise ValueError(f"Mode d'attribution invalide. Valeurs acceptées : {ROOM_ALLOCATIONS}")
        return v

    @model_validator(mode="after")
    def windows_are_ordered(self) -> "GenerationConfigCreate":
        # Les chaînes HH:MM se comparent correctement dans l'ordre lexicographique
        if self.start_time_weekdays >= self.end_time_weekdays:
            raise ValueError("L'heure de fin (lun-ven) doit suivre l'heure de début.")
        if self.start_time_wednesday >= self.end_time_wednesday:
            raise ValueError("L'heure de fin du mercredi doit suivre l'heure de début.")
        if self.lunch_start >= self.lunch_end:
            raise ValueError("La fin de la pause déjeuner doit suivre son début.")
        return self


class GenerateRequest(GenerationConfigCreate):
    """Corps de requête de génération : la config plus l'auteur (optionnel)."""
    generated_by: Optional[uuid.UUID] = None


class ScheduleEntry(BaseModel):
    """Créneau proposé dans un brouillon (pas encore canonique)."""
    class_id: uuid.UUID
    class_name: str
    subject_id: uuid.UUID
    subject_name: str
    teacher_id: Optional[uuid.UUID] = None  # None = aucune affectation enseignant trouvée
    day_of_week: int = Field(ge=1, le=5)
    start_time: str
    end_time: str
    room: str


class GeneratedScheduleResponse(BaseModel):
    id: uuid.UUID
    config_id: Optional[uuid.UUID]
    school_year: str
    status: str
    entries: List[ScheduleEntry]
    created_at: Optional[datetime]
    published_at: Optional[datetime] = None
    published_by: Optional[uuid.UUID] = None


class GeneratedScheduleSummary(BaseModel):
    """Ligne d'historique (sans le détail des créneaux)."""
    id: uuid.UUID
    school_year: str
    status: str
    nb_entries: int
    created_at: Optional[datetime]
    published_at: Optional[datetime] = None


class ScheduleStatusResponse(BaseModel):
    """État courant pour l'écran de génération (reprise après rechargement)."""
    status: Literal["none", "draft", "published"]
    schedule: Optional[GeneratedScheduleResponse] = None


class PublishRequest(BaseModel):
    published_by: Optional[uuid.UUID] = None


class SkippedEntry(BaseModel):
    entry: ScheduleEntry
    reason: str


class FailedEntry(BaseModel):
    entry: ScheduleEntry
    error: str


class PublishResult(BaseModel):
    """Rapport de publication : la publication est best-effort par créneau."""
    schedule_id: uuid.UUID
    status: str
    published_at: datetime
    inserted_count: int
    skipped_entries: List[SkippedEntry]
    failed_entries: List[FailedEntry]
    notified_count: int
    notification_error: Optional[str] = None

    @property
    def needs_follow_up(self) -> bool:
        return bool(self.skipped_entries or self.failed_entries or self.notification_error)


def entries_to_payload(entries: List[ScheduleEntry]) -> List[dict[str, Any]]:
    """Sérialise les créneaux pour la colonne JSONB (UUID → str)."""
    return [e.model_dump(mode="json") for e in entries]
