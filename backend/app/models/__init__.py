# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from app.models.student import Student  # noqa: F401  — doit précéder requirement
from app.models.requirement import RequirementSubmission  # noqa: F401
from app.models.deleted_student import DeletedStudent  # noqa: F401
from app.models.company import Company  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.auth_account import AuthAccount  # noqa: F401
from app.models.program import Program  # noqa: F401
