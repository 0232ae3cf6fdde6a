"""
Email sync feature package.

Attributes inbound email to jobs, keeps the idempotent job event ledger and
moves job workflow stages from those events. Domain models, repositories,
services and the webhook router live together in this slice.
"""

from .api.router import router as email_sync_router  # noqa: F401
from .services import event_service, match_service, thread_service  # noqa: F401
from .domain.models import EmailThread, EventType, JobEvent, WorkflowStage  # noqa: F401
