"""
Job validation API response models.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.features.job_validation.domain import Severity, ValidationResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ViolationResponse(CamelModel):
    code: str
    message: str
    severity: Severity
    data: dict[str, Any] = Field(default_factory=dict)


class ValidationResponse(CamelModel):
    ok: bool
    job_id: str
    job_no: str | None = None
    violations: list[ViolationResponse]
    checked_at: datetime

    @classmethod
    def from_result(cls, result: ValidationResult) -> "ValidationResponse":
        return cls(
            ok=result.ok,
            job_id=result.job_id,
            job_no=result.job_no,
            violations=[
                ViolationResponse(
                    code=v.code, message=v.message, severity=v.severity, data=v.data
                )
                for v in result.violations
            ],
            checked_at=result.checked_at,
        )
