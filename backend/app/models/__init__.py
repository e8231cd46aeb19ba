# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.
# Sans cet import, les FK comme teacher_subjects.teacher_id → users.id échouent
# avec NoReferencedTableError si user.py n'est pas chargé avant subject.py.

from app.models.user import User  # noqa: F401  — doit précéder subject et course
from app.models.school_class import SchoolClass  # noqa: F401
from app.models.subject import Subject, TeacherSubject  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.schedule import (  # noqa: F401
    ActiveScheduleDraft,
    GeneratedSchedule,
    Schedule,
    ScheduleGenerationConfig,
)
from app.models.notification import Notification  # noqa: F401
