from educare.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from educare.app.models.user import User  # noqa: F401
from educare.app.models.student import Student  # noqa: F401
from educare.app.models.guardian_link import GuardianLink  # noqa: F401
from educare.app.models.session import Session  # noqa: F401
from educare.app.models.behavior_incident import BehaviorIncident  # noqa: F401
from educare.app.models.audit_log import AuditLog  # noqa: F401
from educare.app.models.goal_evaluation import GoalEvaluation  # noqa: F401
from educare.app.models.guardian_message import GuardianMessage  # noqa: F401
