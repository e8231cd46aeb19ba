"""
Router pour la génération et la publication des emplois du temps.
Réservé à la direction : l'authentification et les rôles sont vérifiés en amont.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import (
    InvalidStateError,
    PersistenceError,
    PreconditionError,
    ScheduleNotFoundError,
)
from app.schemas.directory import DirectorySummary
from app.schemas.schedule import (
    GeneratedScheduleResponse,
    GeneratedScheduleSummary,
    GenerateRequest,
    GenerationConfigCreate,
    PublishRequest,
    PublishResult,
    ScheduleStatusResponse,
)
from app.services import directory_service, publication_service, schedule_service

router = APIRouter(prefix="/api/v1/schedules", tags=["Emplois du temps"])


@router.get("/directory", response_model=DirectorySummary, summary="Données disponibles pour la génération")
def get_directory(db: Session = Depends(get_db)):
    """Nombre de classes, matières et enseignants ; classes par niveau et enseignants par matière."""
    return directory_service.get_directory_summary(db)


@router.post(
    "/generate",
    response_model=GeneratedScheduleResponse,
    status_code=201,
    summary="Générer un brouillon d'emploi du temps",
)
def generate(data: GenerateRequest, db: Session = Depends(get_db)):
    """
    Génère un nouveau brouillon à partir de l'annuaire courant.

    - 400 si classes, matières ou enseignants manquent
    - 422 si la configuration est invalide (heures, salles insuffisantes en mode first_free)
    - 503 si l'enregistrement échoue (aucun brouillon partiel n'est conservé)
    """
    config = GenerationConfigCreate(**data.model_dump(exclude={"generated_by"}))
    try:
        return schedule_service.generate_schedule(db, config, generated_by=data.generated_by)
    except PreconditionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/latest", response_model=ScheduleStatusResponse, summary="Dernier emploi du temps généré")
def get_latest(db: Session = Depends(get_db)):
    """Retourne le statut (none, draft, published) et le dernier emploi du temps généré."""
    return schedule_service.get_schedule_status(db)


@router.get("/active-draft", response_model=GeneratedScheduleResponse, summary="Brouillon publiable")
def get_active_draft(db: Session = Depends(get_db)):
    draft = schedule_service.get_active_draft(db)
    if draft is None:
        raise HTTPException(status_code=404, detail="Aucun brouillon en attente de publication.")
    return draft


@router.get("/history", response_model=List[GeneratedScheduleSummary], summary="Historique des générations")
def list_history(db: Session = Depends(get_db)):
    return schedule_service.list_schedules(db)


@router.get("/{schedule_id}", response_model=GeneratedScheduleResponse, summary="Détail d'un emploi du temps")
def get_schedule(schedule_id: uuid.UUID, db: Session = Depends(get_db)):
    schedule = schedule_service.get_schedule(db, schedule_id)
    if schedule is None:
        raise HTTPException(status_code=404, detail="Emploi du temps introuvable.")
    return schedule


@router.post("/{schedule_id}/publish", response_model=PublishResult, summary="Publier un brouillon")
def publish(
    schedule_id: uuid.UUID,
    data: Optional[PublishRequest] = Body(default=None),
    db: Session = Depends(get_db),
):
    """
    Publie le brouillon actif : créneaux canoniques + notification de tous les utilisateurs.

    La publication est best-effort par créneau : le rapport liste les créneaux ignorés
    (sans enseignant ou sans cours) et ceux dont l'insertion a échoué.
    """
    published_by = data.published_by if data else None
    try:
        return publication_service.publish_schedule(db, schedule_id, published_by=published_by)
    except ScheduleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))
