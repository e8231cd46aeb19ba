"""
Service d'orchestration de la génération des emplois du temps.

Flux de generate_schedule :
  1. Charger l'annuaire (classes, matières, affectations, nombre d'enseignants)
  2. Refuser la génération si l'un des trois est vide (PreconditionError, aucune écriture)
  3. Exécuter le moteur en mémoire (une config invalide échoue ici, avant toute écriture)
  4. Enregistrer la config, le brouillon et le pointeur de brouillon actif en une seule transaction
"""

import uuid
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import PersistenceError, PreconditionError
from app.models.schedule import (
    ACTIVE_DRAFT_ID,
    STATUS_DRAFT,
    ActiveScheduleDraft,
    GeneratedSchedule,
    ScheduleGenerationConfig,
)
from app.schemas.schedule import (
    GeneratedScheduleResponse,
    GeneratedScheduleSummary,
    GenerationConfigCreate,
    ScheduleEntry,
    ScheduleStatusResponse,
    entries_to_payload,
)
from app.services import directory_service, schedule_engine

logger = logging.getLogger(__name__)


def generate_schedule(
    db: Session,
    config: GenerationConfigCreate,
    generated_by: Optional[uuid.UUID] = None,
) -> GeneratedScheduleResponse:
    """
    Génère un nouveau brouillon d'emploi du temps.
    Les brouillons précédents sont conservés (historique) mais ne sont plus publiables.
    """
    snapshot = directory_service.load_directory_snapshot(db)
    missing = directory_service.missing_directory_data(snapshot)
    if missing:
        raise PreconditionError(missing)

    entries = schedule_engine.generate_entries(
        snapshot.classes,
        snapshot.subjects,
        snapshot.assignments,
        config,
        room_prefix=settings.SCHEDULE_ROOM_PREFIX,
    )

    conflicts = schedule_engine.find_room_conflicts(entries)
    if conflicts:
        logger.warning(
            "%d créneau(x) avec une salle attribuée plusieurs fois (attribution %s)",
            len(conflicts), config.room_allocation,
        )
    unassigned = schedule_engine.unassigned_entries(entries)
    if unassigned:
        logger.warning("%d créneau(x) sans enseignant à corriger avant publication", len(unassigned))

    config_row = ScheduleGenerationConfig(
        id=uuid.uuid4(),
        generated_by=generated_by,
        generated_at=datetime.now(),
        **config.model_dump(include=set(GenerationConfigCreate.model_fields)),
    )
    schedule = GeneratedSchedule(
        id=uuid.uuid4(),
        config_id=config_row.id,
        school_year=config.school_year,
        schedule_data=entries_to_payload(entries),
        status=STATUS_DRAFT,
    )

    try:
        db.add(config_row)
        db.flush()  # la config doit exister avant la FK du brouillon
        db.add(schedule)
        db.flush()
        _point_active_draft(db, schedule.id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de l'enregistrement du brouillon : %s", exc)
        raise PersistenceError(f"Échec de l'enregistrement de l'emploi du temps : {exc}") from exc

    db.refresh(schedule)
    logger.info(
        "Brouillon %s généré (%s) : %d créneaux pour %d classes",
        schedule.id, config.school_year, len(entries), len(snapshot.classes),
    )
    return _to_response(schedule)


def get_latest_schedule(db: Session) -> Optional[GeneratedScheduleResponse]:
    """Dernier emploi du temps généré (brouillon ou publié), ou None."""
    schedule = db.execute(
        select(GeneratedSchedule)
        .order_by(GeneratedSchedule.created_at.desc())
        .limit(1)
    ).scalar()
    if schedule is None:
        return None
    return _to_response(schedule)


def get_schedule_status(db: Session) -> ScheduleStatusResponse:
    """État affiché à l'ouverture de l'écran : none, draft ou published."""
    latest = get_latest_schedule(db)
    if latest is None:
        return ScheduleStatusResponse(status="none")
    return ScheduleStatusResponse(status=latest.status, schedule=latest)


def get_active_draft(db: Session) -> Optional[GeneratedScheduleResponse]:
    """Le seul brouillon publiable, ou None si aucun brouillon n'attend de décision."""
    pointer = db.get(ActiveScheduleDraft, ACTIVE_DRAFT_ID)
    if pointer is None or pointer.generated_schedule_id is None:
        return None
    schedule = db.get(GeneratedSchedule, pointer.generated_schedule_id)
    if schedule is None:
        return None
    return _to_response(schedule)


def get_schedule(db: Session, schedule_id: uuid.UUID) -> Optional[GeneratedScheduleResponse]:
    schedule = db.get(GeneratedSchedule, schedule_id)
    if schedule is None:
        return None
    return _to_response(schedule)


def list_schedules(db: Session) -> list[GeneratedScheduleSummary]:
    """Historique des générations, de la plus récente à la plus ancienne."""
    schedules = db.execute(
        select(GeneratedSchedule).order_by(GeneratedSchedule.created_at.desc())
    ).scalars().all()
    return [
        GeneratedScheduleSummary(
            id=s.id,
            school_year=s.school_year,
            status=s.status,
            nb_entries=len(s.schedule_data or []),
            created_at=s.created_at,
            published_at=s.published_at,
        )
        for s in schedules
    ]


def _point_active_draft(db: Session, schedule_id: uuid.UUID) -> None:
    """Fait pointer le brouillon actif vers schedule_id (ligne verrouillée)."""
    pointer = db.get(ActiveScheduleDraft, ACTIVE_DRAFT_ID, with_for_update=True)
    if pointer is None:
        db.add(ActiveScheduleDraft(id=ACTIVE_DRAFT_ID, generated_schedule_id=schedule_id))
    else:
        pointer.generated_schedule_id = schedule_id


def _to_response(schedule: GeneratedSchedule) -> GeneratedScheduleResponse:
    return GeneratedScheduleResponse(
        id=schedule.id,
        config_id=schedule.config_id,
        school_year=schedule.school_year,
        status=schedule.status,
        entries=[ScheduleEntry.model_validate(e) for e in schedule.schedule_data or []],
        created_at=schedule.created_at,
        published_at=schedule.published_at,
        published_by=schedule.published_by,
    )
