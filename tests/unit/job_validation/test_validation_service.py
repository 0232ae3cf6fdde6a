"""
Tests for the validation service and violation summary.
"""

from datetime import UTC, datetime

import pytest

from app.features.email_sync.domain import JobStatus, WorkflowStage
from app.features.job_validation.domain import JobSnapshot, Severity, ValidationResult, Violation
from app.features.job_validation.services import summarize

NOW = datetime(2025, 3, 1, tzinfo=UTC)


def result(job_no: str, *violations: tuple[str, Severity]) -> ValidationResult:
    return ValidationResult(
        ok=not violations,
        job_id=f"id-{job_no}",
        job_no=job_no,
        checked_at=NOW,
        violations=[Violation(code=code, message=code, severity=sev) for code, sev in violations],
    )


def snapshot(job_id: str, **fields) -> JobSnapshot:
    return JobSnapshot(
        id=job_id,
        job_no=f"J-{job_id}",
        status=fields.pop("status", JobStatus.ACTIVE),
        workflow_status=fields.pop("workflow_status", WorkflowStage.IN_PRODUCTION),
        **fields,
    )


@pytest.mark.asyncio
async def test_validate_clean_job(snapshot_repo, validation_service):
    snapshot_repo.snapshots["job-1"] = snapshot("job-1")

    outcome = await validation_service.validate_job("job-1")

    assert outcome.ok is True
    assert outcome.violations == []
    assert outcome.job_no == "J-job-1"
    assert outcome.checked_at.tzinfo is not None


@pytest.mark.asyncio
async def test_validate_unknown_job_reports_not_found(validation_service):
    outcome = await validation_service.validate_job("ghost")

    assert outcome.ok is False
    assert [v.code for v in outcome.violations] == ["JOB_NOT_FOUND"]
    assert outcome.violations[0].severity is Severity.ERROR
    assert outcome.has_errors


@pytest.mark.asyncio
async def test_validate_job_with_violation_is_not_ok(snapshot_repo, validation_service):
    snapshot_repo.snapshots["job-2"] = snapshot("job-2", workflow_status_override="PAID")

    outcome = await validation_service.validate_job("job-2")

    assert outcome.ok is False
    assert [v.code for v in outcome.violations] == ["OVERRIDE_HAS_TIMESTAMP"]
    assert not outcome.has_errors


@pytest.mark.asyncio
async def test_validate_recent_jobs_respects_limit(snapshot_repo, validation_service):
    for i in range(5):
        snapshot_repo.snapshots[f"job-{i}"] = snapshot(f"job-{i}")

    results = await validation_service.validate_recent_jobs(limit=3)

    assert [r.job_id for r in results] == ["job-0", "job-1", "job-2"]
    assert all(r.ok for r in results)


@pytest.mark.asyncio
async def test_validate_jobs_keeps_order(snapshot_repo, validation_service):
    snapshot_repo.snapshots["a"] = snapshot("a")
    snapshot_repo.snapshots["b"] = snapshot("b")

    results = await validation_service.validate_jobs(["b", "missing", "a"])

    assert [r.job_id for r in results] == ["b", "missing", "a"]
    assert results[1].violations[0].code == "JOB_NOT_FOUND"


def test_summarize_counts_and_orders_codes():
    summary = summarize(
        [
            result("J-1", ("JD_INVOICE_CHAIN", Severity.ERROR), ("OVERRIDE_HAS_TIMESTAMP", Severity.WARN)),
            result("J-2", ("OVERRIDE_HAS_TIMESTAMP", Severity.WARN)),
            result("J-3", ("OVERRIDE_HAS_TIMESTAMP", Severity.WARN)),
            result("J-4"),
        ]
    )

    assert summary.job_count == 4
    assert summary.ok_count == 1
    assert summary.error_count == 1
    assert summary.warn_count == 3
    assert summary.has_errors

    assert [c.code for c in summary.codes] == ["OVERRIDE_HAS_TIMESTAMP", "JD_INVOICE_CHAIN"]
    top = summary.codes[0]
    assert top.count == 3
    assert top.samples == ["J-1", "J-2"]


def test_summarize_ties_sorted_by_code():
    summary = summarize(
        [result("J-1", ("QC_READY_CONSISTENCY", Severity.ERROR), ("CANCELLED_IS_TERMINAL", Severity.WARN))]
    )

    assert [c.code for c in summary.codes] == ["CANCELLED_IS_TERMINAL", "QC_READY_CONSISTENCY"]


def test_summarize_mixed_severity_reports_error():
    summary = summarize(
        [
            result("J-1", ("INVOICE_BEFORE_PAYMENT", Severity.WARN)),
            result("J-2", ("INVOICE_BEFORE_PAYMENT", Severity.ERROR)),
        ]
    )

    (entry,) = summary.codes
    assert entry.severity is Severity.ERROR
    assert summary.error_count == 1
    assert summary.warn_count == 1


def test_summarize_warn_only_has_no_errors():
    summary = summarize([result("J-1", ("PO_COST_MATCHES_SPLIT", Severity.WARN))])

    assert summary.has_errors is False


def test_summarize_empty():
    summary = summarize([])

    assert summary.job_count == 0
    assert summary.codes == []
    assert summary.has_errors is False
