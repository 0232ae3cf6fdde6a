"""
On-demand job validation route.
"""

from fastapi import APIRouter, Depends

from app.auth.verify import require_webhook_secret
from app.features.job_validation.services import ValidationService, validation_service

from .schemas import ValidationResponse

router = APIRouter(prefix="/jobs", tags=["job-validation"])


def get_validation_service() -> ValidationService:
    return validation_service


@router.get(
    "/{job_id}/validation",
    response_model=ValidationResponse,
    dependencies=[Depends(require_webhook_secret)],
)
async def validate_job(
    job_id: str,
    service: ValidationService = Depends(get_validation_service),
):
    """Run every invariant against the job. Unknown jobs report JOB_NOT_FOUND."""
    result = await service.validate_job(job_id)
    return ValidationResponse.from_result(result)
