"""
Moteur de génération des emplois du temps (remplissage round-robin).

Fonction pure : aucune lecture en base, aucun état partagé entre deux appels.
Pour des entrées identiques, la sortie est identique et triée classe → jour → heure.

Règles :
- Jours ouvrés du lundi (1) au vendredi (5). Le mercredi utilise sa plage raccourcie.
- Le créneau avance d'une heure fixe ; la durée de cours et la pause de la config
  sont conservées mais n'influencent pas le pas.
- Un créneau qui tombe dans la pause déjeuner est reporté à la fin de celle-ci.
- Chaque jour, les matières sont parcourues dans l'ordre : une matière par créneau
  tant qu'il reste du temps dans la journée.
- L'enseignant est la première affectation trouvée pour la matière (None sinon).
- Salles : compteur global partagé sur toute la génération (round_robin) ou première
  salle libre du créneau (first_free).
"""

import uuid
from collections import Counter
from typing import Dict, Iterator, List, NamedTuple, Sequence, Tuple

from app.schemas.directory import ClassSummary, SubjectSummary, TeacherSubjectAssignment
from app.schemas.schedule import GenerationConfigCreate, ScheduleEntry

WORKING_DAYS = (1, 2, 3, 4, 5)
WEDNESDAY = 3
SLOT_STEP_MINUTES = 60

ROUND_ROBIN = "round_robin"
FIRST_FREE = "first_free"


class RoomCapacityError(ValueError):
    """Toutes les salles sont déjà occupées sur un créneau (mode first_free)."""


class DayWindow(NamedTuple):
    start: int  # minutes depuis minuit
    end: int


class RoomState(NamedTuple):
    """État des salles transmis explicitement d'un créneau au suivant."""
    index: int                                   # nombre de créneaux déjà placés
    occupied: frozenset = frozenset()            # (jour, début, salle) déjà pris


def parse_hhmm(value: str) -> int:
    """Convertit "HH:MM" en minutes depuis minuit. Lève ValueError si le format est invalide."""
    try:
        hours, minutes = value.split(":")
        h, m = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValueError(f"Heure invalide '{value}' (format attendu : HH:MM).")
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Heure invalide '{value}' (format attendu : HH:MM).")
    return h * 60 + m


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_windows(config: GenerationConfigCreate) -> Dict[int, DayWindow]:
    """Plage horaire de chaque jour ouvré (mercredi raccourci)."""
    weekday = DayWindow(parse_hhmm(config.start_time_weekdays), parse_hhmm(config.end_time_weekdays))
    wednesday = DayWindow(parse_hhmm(config.start_time_wednesday), parse_hhmm(config.end_time_wednesday))
    return {day: (wednesday if day == WEDNESDAY else weekday) for day in WORKING_DAYS}


def slot_starts(window: DayWindow, lunch_start: int, lunch_end: int) -> Iterator[int]:
    """Débuts de créneaux d'une journée, pause déjeuner sautée."""
    current = window.start
    while True:
        if lunch_start <= current < lunch_end:
            current = lunch_end
        if current >= window.end:
            return
        yield current
        current += SLOT_STEP_MINUTES


def first_teacher_by_subject(
    assignments: Sequence[TeacherSubjectAssignment],
) -> Dict[uuid.UUID, uuid.UUID]:
    """Première affectation trouvée pour chaque matière (pas d'équilibrage de charge)."""
    mapping: Dict[uuid.UUID, uuid.UUID] = {}
    for assignment in assignments:
        mapping.setdefault(assignment.subject_id, assignment.teacher_id)
    return mapping


def allocate_room(
    strategy: str,
    state: RoomState,
    total_rooms: int,
    day: int,
    start: int,
) -> Tuple[int, RoomState]:
    """Retourne le numéro de salle (1..total_rooms) et le nouvel état."""
    if strategy == FIRST_FREE:
        for room in range(1, total_rooms + 1):
            if (day, start, room) not in state.occupied:
                return room, RoomState(state.index + 1, state.occupied | {(day, start, room)})
        raise RoomCapacityError(
            f"Aucune salle libre le jour {day} à {format_hhmm(start)} "
            f"({total_rooms} salle(s) disponibles)."
        )
    return (state.index % total_rooms) + 1, RoomState(state.index + 1, state.occupied)


def _fill_day(
    school_class: ClassSummary,
    day: int,
    window: DayWindow,
    lunch: Tuple[int, int],
    subjects: Sequence[SubjectSummary],
    teachers: Dict[uuid.UUID, uuid.UUID],
    config: GenerationConfigCreate,
    state: RoomState,
    room_prefix: str,
) -> Tuple[List[ScheduleEntry], RoomState]:
    entries = []
    # zip s'arrête sur la plus courte séquence : min(nb matières, nb créneaux)
    for subject, start in zip(subjects, slot_starts(window, *lunch)):
        room, state = allocate_room(config.room_allocation, state, config.total_rooms, day, start)
        entries.append(
            ScheduleEntry(
                class_id=school_class.id,
                class_name=school_class.name,
                subject_id=subject.id,
                subject_name=subject.name,
                teacher_id=teachers.get(subject.id),
                day_of_week=day,
                start_time=format_hhmm(start),
                end_time=format_hhmm(start + SLOT_STEP_MINUTES),
                room=f"{room_prefix} {room}",
            )
        )
    return entries, state


def generate_entries(
    classes: Sequence[ClassSummary],
    subjects: Sequence[SubjectSummary],
    assignments: Sequence[TeacherSubjectAssignment],
    config: GenerationConfigCreate,
    room_prefix: str = "Salle",
) -> List[ScheduleEntry]:
    """
    Produit la liste ordonnée des créneaux proposés.
    Les heures de la config sont analysées avant toute boucle : une config invalide
    lève ValueError même sans classe.
    """
    windows = day_windows(config)
    lunch = (parse_hhmm(config.lunch_start), parse_hhmm(config.lunch_end))
    teachers = first_teacher_by_subject(assignments)

    entries: List[ScheduleEntry] = []
    state = RoomState(0)
    for school_class in classes:
        for day in WORKING_DAYS:
            day_entries, state = _fill_day(
                school_class, day, windows[day], lunch, subjects, teachers, config, state, room_prefix
            )
            entries.extend(day_entries)
    return entries


def find_room_conflicts(entries: Sequence[ScheduleEntry]) -> List[Tuple[int, str, str]]:
    """
    Liste des (jour, début, salle) attribués à plusieurs créneaux.
    Le mode round_robin ne garantit pas l'absence de doublons : ce contrôle permet de les signaler.
    """
    counts = Counter((e.day_of_week, e.start_time, e.room) for e in entries)
    return sorted(key for key, n in counts.items() if n > 1)


def unassigned_entries(entries: Sequence[ScheduleEntry]) -> List[ScheduleEntry]:
    """Créneaux sans enseignant, à corriger manuellement avant publication."""
    return [e for e in entries if e.teacher_id is None]

