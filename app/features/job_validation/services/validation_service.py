"""
Job validation service.

Loads a job snapshot and runs the invariant registry. Read-only: nothing in
this module writes to the database. Violations are returned as data; only
storage failures raise.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from app.features.job_validation.domain import Severity, ValidationResult
from app.features.job_validation.domain.invariants import job_not_found, run_invariants
from app.features.job_validation.repository import (
    JobSnapshotRepository,
    PostgresJobSnapshotRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

MAX_SAMPLES = 2


@dataclass(slots=True)
class CodeSummary:
    code: str
    severity: Severity
    count: int = 0
    samples: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ValidationSummary:
    job_count: int
    ok_count: int
    error_count: int
    warn_count: int
    codes: list[CodeSummary]

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


def summarize(results: Iterable[ValidationResult]) -> ValidationSummary:
    """
    Aggregate violations by code, most frequent first.

    A code that appears with both severities is reported as ERROR.
    """
    by_code: dict[str, CodeSummary] = {}
    job_count = ok_count = error_count = warn_count = 0

    for result in results:
        job_count += 1
        if result.ok:
            ok_count += 1

        for violation in result.violations:
            entry = by_code.setdefault(
                violation.code, CodeSummary(code=violation.code, severity=violation.severity)
            )
            entry.count += 1
            if violation.severity is Severity.ERROR:
                entry.severity = Severity.ERROR
                error_count += 1
            else:
                warn_count += 1

            sample = result.job_no or result.job_id
            if len(entry.samples) < MAX_SAMPLES and sample not in entry.samples:
                entry.samples.append(sample)

    codes = sorted(by_code.values(), key=lambda entry: (-entry.count, entry.code))
    return ValidationSummary(
        job_count=job_count,
        ok_count=ok_count,
        error_count=error_count,
        warn_count=warn_count,
        codes=codes,
    )


class ValidationService:
    DEFAULT_BATCH_LIMIT = 25

    def __init__(self, repository: JobSnapshotRepository | None = None):
        self.repository = repository or PostgresJobSnapshotRepository()

    async def validate_job(self, job_id: str) -> ValidationResult:
        checked_at = datetime.now(UTC)
        snapshot = await self.repository.get_snapshot(job_id)

        if snapshot is None:
            logger.warning("Validation requested for unknown job", job_id=job_id)
            return ValidationResult(
                ok=False,
                job_id=job_id,
                violations=[job_not_found(job_id)],
                checked_at=checked_at,
            )

        violations = run_invariants(snapshot)
        if violations:
            logger.info(
                "Job validation found violations",
                job_id=job_id,
                job_no=snapshot.job_no,
                codes=[v.code for v in violations],
            )

        return ValidationResult(
            ok=not violations,
            job_id=job_id,
            violations=violations,
            checked_at=checked_at,
            job_no=snapshot.job_no,
        )

    async def validate_jobs(self, job_ids: Iterable[str]) -> list[ValidationResult]:
        """Validate jobs one after another, in the order given."""
        return [await self.validate_job(job_id) for job_id in job_ids]

    async def validate_recent_jobs(self, limit: int = DEFAULT_BATCH_LIMIT) -> list[ValidationResult]:
        jobs = await self.repository.list_recent_jobs(limit)
        results = await self.validate_jobs(job.id for job in jobs)

        # Snapshot lookups can miss jobs deleted mid-run; keep the listed job number
        job_numbers = {job.id: job.job_no for job in jobs}
        for result in results:
            if result.job_no is None:
                result.job_no = job_numbers.get(result.job_id)
        return results


validation_service = ValidationService()
