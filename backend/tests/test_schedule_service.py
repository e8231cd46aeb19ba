"""
Tests unitaires pour l'orchestration de la génération (brouillon, historique, brouillon actif).
"""

import uuid
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import PersistenceError, PreconditionError
from app.models.schedule import ActiveScheduleDraft, GeneratedSchedule, ScheduleGenerationConfig
from app.schemas.directory import (
    ClassSummary,
    DirectorySnapshot,
    SubjectSummary,
    TeacherSubjectAssignment,
)
from app.schemas.schedule import GenerationConfigCreate
from app.services.schedule_service import (
    generate_schedule,
    get_active_draft,
    get_latest_schedule,
    get_schedule_status,
    list_schedules,
)

SNAPSHOT_PATH = "app.services.schedule_service.directory_service.load_directory_snapshot"


# --- Helpers ---

def make_snapshot(nb_classes=2, nb_subjects=3, teacher_count=2):
    subjects = [SubjectSummary(id=uuid.uuid4(), name=f"Matière {i}") for i in range(nb_subjects)]
    return DirectorySnapshot(
        classes=[
            ClassSummary(id=uuid.uuid4(), name=f"5ème {i}", level="5ème")
            for i in range(nb_classes)
        ],
        subjects=subjects,
        assignments=[
            TeacherSubjectAssignment(teacher_id=uuid.uuid4(), subject_id=s.id)
            for s in subjects[:2]
        ],
        teacher_count=teacher_count,
    )


def make_config(**kwargs):
    return GenerationConfigCreate(total_rooms=5, **kwargs)


def make_db(pointer=None):
    db = MagicMock()
    db.get.return_value = pointer
    return db


def make_schedule_mock(status="draft", entries=None):
    s = MagicMock(spec=GeneratedSchedule)
    s.id = uuid.uuid4()
    s.config_id = uuid.uuid4()
    s.school_year = "2025-2026"
    s.status = status
    s.schedule_data = entries or []
    s.created_at = datetime.now()
    s.published_at = None
    s.published_by = None
    return s


def added_objects(db):
    return [c.args[0] for c in db.add.call_args_list]


# ============================================================
# generate_schedule — préconditions
# ============================================================

@pytest.mark.parametrize("snapshot_kwargs,missing", [
    ({"nb_classes": 0}, "classes"),
    ({"nb_subjects": 0}, "matières"),
    ({"teacher_count": 0}, "enseignants"),
])
def test_generation_refusee_si_annuaire_incomplet(snapshot_kwargs, missing):
    """Aucune écriture si classes, matières ou enseignants manquent."""
    db = make_db()
    with patch(SNAPSHOT_PATH, return_value=make_snapshot(**snapshot_kwargs)):
        with pytest.raises(PreconditionError, match=missing):
            generate_schedule(db, make_config())

    db.add.assert_not_called()
    db.commit.assert_not_called()


# ============================================================
# generate_schedule — succès
# ============================================================

def test_generation_cree_config_brouillon_et_pointeur():
    db = make_db(pointer=None)
    author = uuid.uuid4()
    with patch(SNAPSHOT_PATH, return_value=make_snapshot()):
        result = generate_schedule(db, make_config(), generated_by=author)

    assert result.status == "draft"
    assert result.school_year == "2025-2026"
    assert len(result.entries) == 30
    db.commit.assert_called_once()

    config_row, schedule_row, pointer_row = added_objects(db)
    assert isinstance(config_row, ScheduleGenerationConfig)
    assert config_row.total_rooms == 5
    assert config_row.generated_by == author
    assert isinstance(schedule_row, GeneratedSchedule)
    assert schedule_row.config_id == config_row.id
    assert schedule_row.id == result.id
    # JSONB : les UUID sont sérialisés en chaînes
    assert isinstance(schedule_row.schedule_data[0]["class_id"], str)
    assert isinstance(pointer_row, ActiveScheduleDraft)
    assert pointer_row.generated_schedule_id == result.id


def test_generation_remplace_le_brouillon_actif():
    """Une nouvelle génération crée un nouveau brouillon et déplace le pointeur."""
    previous_draft = uuid.uuid4()
    pointer = MagicMock(generated_schedule_id=previous_draft)
    db = make_db(pointer=pointer)
    with patch(SNAPSHOT_PATH, return_value=make_snapshot()):
        result = generate_schedule(db, make_config())

    assert pointer.generated_schedule_id == result.id
    assert pointer.generated_schedule_id != previous_draft
    assert db.add.call_count == 2  # config + brouillon, pointeur existant mis à jour


def test_generation_creneaux_sans_enseignant_conserves():
    db = make_db()
    with patch(SNAPSHOT_PATH, return_value=make_snapshot()):
        result = generate_schedule(db, make_config())

    assert sum(1 for e in result.entries if e.teacher_id is None) == 10


# ============================================================
# generate_schedule — erreurs
# ============================================================

def test_echec_enregistrement_aucun_brouillon_partiel():
    db = make_db()
    db.commit.side_effect = SQLAlchemyError("connexion perdue")
    with patch(SNAPSHOT_PATH, return_value=make_snapshot()):
        with pytest.raises(PersistenceError, match="Échec"):
            generate_schedule(db, make_config())

    db.rollback.assert_called_once()


def test_erreur_moteur_avant_toute_ecriture():
    db = make_db()
    config = GenerationConfigCreate.model_construct(**{**make_config().model_dump(), "lunch_end": "??"})
    with patch(SNAPSHOT_PATH, return_value=make_snapshot()):
        with pytest.raises(ValueError, match="Heure invalide"):
            generate_schedule(db, config)

    db.add.assert_not_called()
    db.commit.assert_not_called()


# ============================================================
# Lecture : dernier emploi du temps, brouillon actif, historique
# ============================================================

def test_dernier_emploi_du_temps_absent():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = None
    assert get_latest_schedule(db) is None
    assert get_schedule_status(db).status == "none"


def test_dernier_emploi_du_temps_publie():
    db = MagicMock()
    db.execute.return_value.scalar.return_value = make_schedule_mock(status="published")
    status = get_schedule_status(db)
    assert status.status == "published"
    assert status.schedule is not None


def test_brouillon_actif_absent():
    db = make_db(pointer=MagicMock(generated_schedule_id=None))
    assert get_active_draft(db) is None


def test_brouillon_actif_present():
    draft = make_schedule_mock()
    pointer = MagicMock(generated_schedule_id=draft.id)
    db = MagicMock()
    db.get.side_effect = lambda model, key, **kw: pointer if model is ActiveScheduleDraft else draft

    result = get_active_draft(db)
    assert result.id == draft.id


def test_historique():
    entry = {
        "class_id": str(uuid.uuid4()),
        "class_name": "5ème A",
        "subject_id": str(uuid.uuid4()),
        "subject_name": "Maths",
        "teacher_id": None,
        "day_of_week": 1,
        "start_time": "07:00",
        "end_time": "08:00",
        "room": "Salle 1",
    }
    db = MagicMock()
    db.execute.return_value.scalars.return_value.all.return_value = [
        make_schedule_mock(entries=[entry, entry]),
        make_schedule_mock(status="published"),
    ]

    history = list_schedules(db)
    assert [h.nb_entries for h in history] == [2, 0]
    assert history[1].status == "published"
