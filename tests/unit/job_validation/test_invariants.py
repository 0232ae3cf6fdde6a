"""
Tests for the job invariant checks.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from app.features.email_sync.domain import JobStatus, WorkflowStage
from app.features.job_validation.domain import (
    JobComponentRecord,
    JobSnapshot,
    ProfitSplitRecord,
    PurchaseOrderRecord,
    Severity,
)
from app.features.job_validation.domain.invariants import INVARIANTS, run_invariants

DAY = timedelta(days=1)
T0 = datetime(2025, 2, 1, tzinfo=UTC)


def make_job(**overrides) -> JobSnapshot:
    base = JobSnapshot(
        id="job-1",
        job_no="J-1001",
        status=JobStatus.ACTIVE,
        workflow_status=WorkflowStage.IN_PRODUCTION,
    )
    return replace(base, **overrides)


def internal_po(po_id: str, cost: str, status: str = "COMPLETED", vendor: str | None = "v-1"):
    return PurchaseOrderRecord(
        id=po_id,
        status=status,
        origin_company_id="impact-direct",
        target_vendor_id=vendor,
        buy_cost=Decimal(cost),
    )


def codes(job: JobSnapshot) -> list[str]:
    return [v.code for v in run_invariants(job)]


def only(job: JobSnapshot, code: str):
    matches = [v for v in run_invariants(job) if v.code == code]
    assert len(matches) == 1, f"expected one {code}, got {matches}"
    return matches[0]


def test_registry_has_eleven_checks():
    assert list(INVARIANTS) == [
        "STATUS_WORKFLOW_MATCH",
        "OVERRIDE_HAS_TIMESTAMP",
        "CANCELLED_IS_TERMINAL",
        "INVOICE_BEFORE_PAYMENT",
        "CUSTOMER_BEFORE_VENDOR",
        "P1_BRADFORD_REQUIRED",
        "JD_INVOICE_CHAIN",
        "PATHWAY_VENDOR_COUNT",
        "PO_COST_MATCHES_SPLIT",
        "PROFITSPLIT_ZERO_WITH_PO_COST",
        "QC_READY_CONSISTENCY",
    ]


def test_clean_job_has_no_violations():
    assert run_invariants(make_job()) == []


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("stage", "violates"),
    [
        (WorkflowStage.PAID, False),
        (WorkflowStage.INVOICED, False),
        (WorkflowStage.COMPLETED, True),
        (WorkflowStage.IN_PRODUCTION, True),
    ],
)
def test_status_workflow_match(stage, violates):
    job = make_job(
        status=JobStatus.PAID,
        workflow_status=stage,
        invoice_emailed_at=T0,
        customer_payment_date=T0 + DAY,
    )

    assert ("STATUS_WORKFLOW_MATCH" in codes(job)) is violates
    if violates:
        assert only(job, "STATUS_WORKFLOW_MATCH").severity is Severity.ERROR


def test_override_without_timestamp_warns():
    violation = only(make_job(workflow_status_override="IN_PRODUCTION"), "OVERRIDE_HAS_TIMESTAMP")
    assert violation.severity is Severity.WARN

    ok = make_job(workflow_status_override="IN_PRODUCTION", workflow_status_override_at=T0)
    assert "OVERRIDE_HAS_TIMESTAMP" not in codes(ok)


def test_cancelled_job_with_payments_warns():
    job = make_job(
        status=JobStatus.CANCELLED,
        workflow_status=WorkflowStage.CANCELLED,
        bradford_payment_paid=True,
        jd_payment_paid=True,
        jd_invoice_number="JD-1",
        jd_invoice_generated_at=T0,
    )

    violation = only(job, "CANCELLED_IS_TERMINAL")
    assert violation.severity is Severity.WARN
    assert violation.data["payments"] == ["bradfordPaymentPaid", "jdPaymentPaid"]


# ---------------------------------------------------------------------------
# Payment order
# ---------------------------------------------------------------------------


def test_payment_without_invoice_is_error():
    violation = only(make_job(customer_payment_date=T0), "INVOICE_BEFORE_PAYMENT")
    assert violation.severity is Severity.ERROR


def test_invoice_after_payment_is_warning():
    job = make_job(customer_payment_date=T0, invoice_emailed_at=T0 + DAY)
    assert only(job, "INVOICE_BEFORE_PAYMENT").severity is Severity.WARN


def test_invoice_before_payment_is_fine():
    job = make_job(customer_payment_date=T0 + DAY, invoice_emailed_at=T0)
    assert "INVOICE_BEFORE_PAYMENT" not in codes(job)


def test_vendor_paid_without_customer_payment_is_error():
    violation = only(make_job(vendor_payment_date=T0), "CUSTOMER_BEFORE_VENDOR")
    assert violation.severity is Severity.ERROR


def test_customer_paid_after_vendor_is_warning():
    job = make_job(
        invoice_emailed_at=T0 - DAY,
        customer_payment_date=T0 + DAY,
        vendor_payment_date=T0,
    )
    assert only(job, "CUSTOMER_BEFORE_VENDOR").severity is Severity.WARN


def test_p1_vendor_payment_needs_bradford_payment():
    job = make_job(
        pathway="P1",
        invoice_emailed_at=T0 - DAY,
        customer_payment_date=T0,
        vendor_payment_date=T0 + DAY,
    )
    assert only(job, "P1_BRADFORD_REQUIRED").severity is Severity.WARN

    paid = replace(job, bradford_payment_paid=True)
    assert "P1_BRADFORD_REQUIRED" not in codes(paid)


def test_jd_payment_needs_invoice_chain():
    violation = only(make_job(jd_payment_paid=True, jd_invoice_number="JD-7"), "JD_INVOICE_CHAIN")

    assert violation.severity is Severity.ERROR
    assert "jdInvoiceGeneratedAt" in violation.message
    assert "jdInvoiceNumber" not in violation.message


# ---------------------------------------------------------------------------
# Data consistency
# ---------------------------------------------------------------------------


def test_p3_needs_multiple_vendors_once_cost_final():
    job = make_job(
        pathway="P3",
        workflow_status=WorkflowStage.COMPLETED,
        purchase_orders=[internal_po("po-1", "100.00", vendor="v-1")],
        profit_split=ProfitSplitRecord(total_cost=Decimal("100.00")),
    )

    violation = only(job, "PATHWAY_VENDOR_COUNT")
    assert violation.data == {"pathway": "P3", "distinctVendors": 1, "componentCount": 0}

    # Not evaluated before costs are final
    assert "PATHWAY_VENDOR_COUNT" not in codes(replace(job, workflow_status=WorkflowStage.IN_PRODUCTION))


def test_p3_with_two_vendors_or_components_is_fine():
    two_vendors = make_job(
        pathway="P3",
        workflow_status=WorkflowStage.PAID,
        status=JobStatus.PAID,
        invoice_emailed_at=T0,
        customer_payment_date=T0,
        purchase_orders=[
            internal_po("po-1", "60.00", vendor="v-1"),
            internal_po("po-2", "40.00", vendor="v-2"),
        ],
        profit_split=ProfitSplitRecord(total_cost=Decimal("100.00")),
    )
    two_components = replace(
        two_vendors,
        purchase_orders=[internal_po("po-1", "100.00", vendor=None)],
        components=[JobComponentRecord(id="c-1"), JobComponentRecord(id="c-2")],
    )

    assert codes(two_vendors) == []
    assert codes(two_components) == []


@pytest.mark.parametrize(
    ("po_costs", "violates"),
    [
        (["500.99"], False),
        (["300.00", "200.99"], False),
        (["501.01"], True),
        (["499.00"], False),
        (["498.99"], True),
    ],
)
def test_po_cost_tolerance(po_costs, violates):
    job = make_job(
        workflow_status=WorkflowStage.COMPLETED,
        purchase_orders=[internal_po(f"po-{i}", cost) for i, cost in enumerate(po_costs)],
        profit_split=ProfitSplitRecord(total_cost=Decimal("500.00")),
    )

    assert ("PO_COST_MATCHES_SPLIT" in codes(job)) is violates


def test_po_cost_mismatch_reports_delta():
    job = make_job(
        workflow_status=WorkflowStage.INVOICED,
        purchase_orders=[internal_po("po-1", "501.01")],
        profit_split=ProfitSplitRecord(total_cost=Decimal("500.00")),
    )

    violation = only(job, "PO_COST_MATCHES_SPLIT")

    assert violation.severity is Severity.WARN
    assert violation.data["delta"] == Decimal("1.01")
    assert violation.data["expected"] == Decimal("500.00")
    assert violation.data["actual"] == Decimal("501.01")
    assert violation.data["poCount"] == 1
    assert violation.data["poIds"] == ["po-1"]


def test_po_cost_counts_only_active_internal_orders():
    job = make_job(
        workflow_status=WorkflowStage.COMPLETED,
        purchase_orders=[
            internal_po("po-1", "500.00"),
            internal_po("po-2", "900.00", status="CANCELLED"),
            internal_po("po-3", "900.00", status="REJECTED"),
            PurchaseOrderRecord(
                id="po-4",
                status="COMPLETED",
                origin_company_id="bradford",
                buy_cost=Decimal("250.00"),
            ),
        ],
        profit_split=ProfitSplitRecord(total_cost=Decimal("500.00")),
    )

    assert "PO_COST_MATCHES_SPLIT" not in codes(job)


def test_po_cost_skipped_before_cost_final_or_without_data():
    mismatched = make_job(
        workflow_status=WorkflowStage.IN_PRODUCTION,
        purchase_orders=[internal_po("po-1", "900.00")],
        profit_split=ProfitSplitRecord(total_cost=Decimal("500.00")),
    )
    no_split = replace(mismatched, workflow_status=WorkflowStage.COMPLETED, profit_split=None)
    no_pos = replace(mismatched, workflow_status=WorkflowStage.COMPLETED, purchase_orders=[])

    assert "PO_COST_MATCHES_SPLIT" not in codes(mismatched)
    assert "PO_COST_MATCHES_SPLIT" not in codes(no_split)
    assert "PO_COST_MATCHES_SPLIT" not in codes(no_pos)


def test_zero_split_with_po_cost_is_flagged_once():
    job = make_job(
        workflow_status=WorkflowStage.COMPLETED,
        purchase_orders=[internal_po("po-1", "501.01")],
        profit_split=ProfitSplitRecord(total_cost=Decimal("0")),
    )

    found = codes(job)

    assert "PROFITSPLIT_ZERO_WITH_PO_COST" in found
    assert "PO_COST_MATCHES_SPLIT" not in found
    assert only(job, "PROFITSPLIT_ZERO_WITH_PO_COST").data["hasProfitSplit"] is True


def test_missing_split_with_po_cost_is_flagged():
    job = make_job(
        workflow_status=WorkflowStage.PAID,
        status=JobStatus.PAID,
        invoice_emailed_at=T0,
        customer_payment_date=T0,
        purchase_orders=[internal_po("po-1", "10.00")],
    )

    violation = only(job, "PROFITSPLIT_ZERO_WITH_PO_COST")
    assert violation.data["hasProfitSplit"] is False


def test_ready_job_lists_every_pending_qc_flag():
    job = make_job(
        readiness_status="READY",
        qc_artwork="PENDING",
        qc_data_files="PENDING",
        qc_mailing="INCOMPLETE",
    )

    violation = only(job, "QC_READY_CONSISTENCY")

    assert violation.severity is Severity.ERROR
    assert violation.data["pendingFlags"] == ["qcArtwork", "qcDataFiles", "qcMailing"]


def test_ready_job_with_complete_qc_is_fine():
    job = make_job(
        readiness_status="READY",
        qc_artwork="APPROVED",
        qc_data_files="RECEIVED",
        qc_mailing="COMPLETE",
    )
    assert codes(job) == []


def test_checks_do_not_short_circuit():
    job = make_job(
        status=JobStatus.CANCELLED,
        workflow_status=WorkflowStage.CANCELLED,
        workflow_status_override="CANCELLED",
        vendor_payment_date=T0,
        readiness_status="READY",
        qc_artwork="PENDING",
    )

    assert codes(job) == [
        "OVERRIDE_HAS_TIMESTAMP",
        "CANCELLED_IS_TERMINAL",
        "CUSTOMER_BEFORE_VENDOR",
        "QC_READY_CONSISTENCY",
    ]
