"""
Erreurs métier du module de génération des emplois du temps.

Les erreurs de validation héritent de ValueError pour rester compatibles avec
les routers qui traduisent les ValueError en réponses HTTP.
"""


class ScheduleError(Exception):
    """Erreur de base du module emplois du temps."""


class PreconditionError(ScheduleError, ValueError):
    """Classes, matières ou enseignants absents : la génération est impossible."""


class InvalidStateError(ScheduleError, ValueError):
    """Transition interdite (ex. publier un emploi du temps déjà publié)."""


class ScheduleNotFoundError(InvalidStateError):
    """Emploi du temps généré introuvable."""


class PersistenceError(ScheduleError, RuntimeError):
    """Échec d'écriture en base (config, brouillon, lignes canoniques)."""
