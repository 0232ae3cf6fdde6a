"""
Job validation feature package.

Read-only audit of a job's stored state against the business invariants,
exposed per job over HTTP and in bulk through the job_validation worker job.
"""

from .api.router import router as job_validation_router  # noqa: F401
from .services import ValidationService, summarize, validation_service  # noqa: F401
from .domain.models import Severity, ValidationResult, Violation  # noqa: F401
