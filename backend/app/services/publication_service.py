"""
Service de publication d'un brouillon d'emploi du temps.

Flux :
  1. Vérifier que l'emploi du temps existe, est un brouillon et est bien le brouillon actif
  2. Pour chaque créneau :
     a. Skip si aucun enseignant (créneau à corriger manuellement)
     b. Skip si aucun cours n'existe pour (classe, matière) — la publication ne crée jamais de cours
     c. Insérer la ligne dans schedules dans un SAVEPOINT : un échec n'annule pas les lignes précédentes
  3. Marquer l'emploi du temps comme publié et libérer le pointeur de brouillon actif
  4. Notifier tous les profils (best-effort : un échec n'annule pas la publication)
"""

import uuid
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidStateError, PersistenceError, ScheduleNotFoundError
from app.models.notification import Notification
from app.models.schedule import (
    ACTIVE_DRAFT_ID,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    ActiveScheduleDraft,
    GeneratedSchedule,
    Schedule,
)
from app.schemas.schedule import FailedEntry, PublishResult, ScheduleEntry, SkippedEntry
from app.services import directory_service

logger = logging.getLogger(__name__)

NOTIFICATION_TYPE = "schedule"
REASON_NO_TEACHER = "sans enseignant"
REASON_NO_COURSE = "aucun cours"


def publish_schedule(
    db: Session,
    schedule_id: uuid.UUID,
    published_by: Optional[uuid.UUID] = None,
) -> PublishResult:
    """
    Publie un brouillon : crée les créneaux canoniques et notifie tous les utilisateurs.

    Lève ScheduleNotFoundError si l'emploi du temps n'existe pas,
    InvalidStateError s'il est déjà publié ou remplacé par un brouillon plus récent,
    PersistenceError si le changement de statut ne peut pas être enregistré.
    """
    schedule = db.get(GeneratedSchedule, schedule_id, with_for_update=True)
    if schedule is None:
        raise ScheduleNotFoundError("Emploi du temps introuvable.")
    if schedule.status != STATUS_DRAFT:
        raise InvalidStateError("Cet emploi du temps est déjà publié.")

    pointer = db.get(ActiveScheduleDraft, ACTIVE_DRAFT_ID, with_for_update=True)
    if pointer is None or pointer.generated_schedule_id != schedule.id:
        raise InvalidStateError(
            "Ce brouillon a été remplacé par une génération plus récente et ne peut plus être publié."
        )

    entries = [ScheduleEntry.model_validate(e) for e in schedule.schedule_data or []]
    inserted_count = 0
    skipped: list[SkippedEntry] = []
    failed: list[FailedEntry] = []

    for entry in entries:
        if entry.teacher_id is None:
            skipped.append(SkippedEntry(entry=entry, reason=REASON_NO_TEACHER))
            continue

        savepoint = db.begin_nested()
        try:
            course_id = directory_service.find_course(db, entry.class_id, entry.subject_id)
            if course_id is None:
                savepoint.rollback()
                skipped.append(SkippedEntry(entry=entry, reason=REASON_NO_COURSE))
                continue
            db.add(Schedule(
                class_id=entry.class_id,
                course_id=course_id,
                day_of_week=entry.day_of_week,
                start_time=entry.start_time,
                end_time=entry.end_time,
                room=entry.room,
            ))
            db.flush()
        except SQLAlchemyError as exc:
            savepoint.rollback()
            failed.append(FailedEntry(entry=entry, error=str(exc)))
            logger.warning(
                "Créneau non publié (classe %s, %s jour %d %s) : %s",
                entry.class_name, entry.subject_name, entry.day_of_week, entry.start_time, exc,
            )
            continue
        savepoint.commit()
        inserted_count += 1

    published_at = datetime.now()
    schedule.status = STATUS_PUBLISHED
    schedule.published_at = published_at
    schedule.published_by = published_by
    pointer.generated_schedule_id = None

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de la publication de l'emploi du temps %s : %s", schedule_id, exc)
        raise PersistenceError(f"Échec de la publication : {exc}") from exc

    notified_count, notification_error = _notify_all_users(db, schedule.school_year)

    result = PublishResult(
        schedule_id=schedule_id,
        status=STATUS_PUBLISHED,
        published_at=published_at,
        inserted_count=inserted_count,
        skipped_entries=skipped,
        failed_entries=failed,
        notified_count=notified_count,
        notification_error=notification_error,
    )
    logger.info(
        "Emploi du temps %s publié : %d insérés, %d ignorés, %d erreurs, %d notifications",
        schedule_id, inserted_count, len(skipped), len(failed), notified_count,
    )
    if result.needs_follow_up:
        logger.warning("Publication %s : suivi manuel nécessaire", schedule_id)
    return result


def _notify_all_users(db: Session, school_year: str) -> tuple[int, Optional[str]]:
    """
    Insère une notification par profil existant.
    Retourne (nombre de notifications, message d'erreur ou None) ; ne lève jamais d'erreur BDD.
    """
    try:
        user_ids = directory_service.list_all_user_ids(db)
        if user_ids:
            db.bulk_insert_mappings(Notification, [
                {
                    "id": uuid.uuid4(),
                    "user_id": uid,
                    "type": NOTIFICATION_TYPE,
                    "title": settings.SCHEDULE_NOTIFICATION_TITLE,
                    "content": f"L'emploi du temps {school_year} a été publié.",
                }
                for uid in user_ids
            ])
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de l'envoi des notifications d'emploi du temps : %s", exc)
        return 0, str(exc)

    return len(user_ids), None
