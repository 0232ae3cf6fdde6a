"""
Business invariants over a job's persisted state.

Each check takes a JobSnapshot and returns at most one Violation. Checks are
pure: they never touch storage and never raise for bad data. Every check in
INVARIANTS runs on every validation; results are concatenated in registry
order.

Workflow:        STATUS_WORKFLOW_MATCH, OVERRIDE_HAS_TIMESTAMP, CANCELLED_IS_TERMINAL
Payment order:   INVOICE_BEFORE_PAYMENT, CUSTOMER_BEFORE_VENDOR,
                 P1_BRADFORD_REQUIRED, JD_INVOICE_CHAIN
Data:            PATHWAY_VENDOR_COUNT, PO_COST_MATCHES_SPLIT,
                 PROFITSPLIT_ZERO_WITH_PO_COST, QC_READY_CONSISTENCY
"""

from collections.abc import Callable
from decimal import Decimal

from app.features.email_sync.domain import JobStatus, WorkflowStage

from .models import JobSnapshot, Pathway, ReadinessStatus, Severity, Violation

InvariantCheck = Callable[[JobSnapshot], Violation | None]

COST_TOLERANCE = Decimal("1.00")

PAID_ALLOWED_STAGES = frozenset({WorkflowStage.PAID, WorkflowStage.INVOICED})

QC_PENDING = "PENDING"
QC_MAILING_INCOMPLETE = "INCOMPLETE"


def _money(value: Decimal | int | float | str | None) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _internal_po_cost(job: JobSnapshot) -> tuple[Decimal, list[str]]:
    active = job.active_internal_pos()
    total = sum((_money(po.buy_cost) for po in active), Decimal("0"))
    return total, [po.id for po in active]


def check_status_workflow_match(job: JobSnapshot) -> Violation | None:
    if job.status == JobStatus.PAID and job.workflow_status not in PAID_ALLOWED_STAGES:
        return Violation(
            code="STATUS_WORKFLOW_MATCH",
            message=f"Job marked PAID but workflowStatus is {job.workflow_status}",
            severity=Severity.ERROR,
            data={"status": str(job.status), "workflowStatus": str(job.workflow_status)},
        )
    return None


def check_override_has_timestamp(job: JobSnapshot) -> Violation | None:
    if job.workflow_status_override and not job.workflow_status_override_at:
        return Violation(
            code="OVERRIDE_HAS_TIMESTAMP",
            message="Workflow status override set but no timestamp recorded",
            severity=Severity.WARN,
            data={"workflowStatusOverride": job.workflow_status_override},
        )
    return None


def check_cancelled_is_terminal(job: JobSnapshot) -> Violation | None:
    if job.status != JobStatus.CANCELLED:
        return None

    payments = []
    if job.customer_payment_date:
        payments.append("customerPaymentDate")
    if job.vendor_payment_date:
        payments.append("vendorPaymentDate")
    if job.bradford_payment_paid:
        payments.append("bradfordPaymentPaid")
    if job.jd_payment_paid:
        payments.append("jdPaymentPaid")

    if payments:
        return Violation(
            code="CANCELLED_IS_TERMINAL",
            message=f"Cancelled job has payment records: {', '.join(payments)}",
            severity=Severity.WARN,
            data={"payments": payments},
        )
    return None


def check_invoice_before_payment(job: JobSnapshot) -> Violation | None:
    if not job.customer_payment_date:
        return None

    if not job.invoice_emailed_at:
        return Violation(
            code="INVOICE_BEFORE_PAYMENT",
            message="Customer payment recorded but no invoice was sent",
            severity=Severity.ERROR,
            data={"customerPaymentDate": job.customer_payment_date, "invoiceEmailedAt": None},
        )

    if job.invoice_emailed_at > job.customer_payment_date:
        return Violation(
            code="INVOICE_BEFORE_PAYMENT",
            message="Invoice sent after customer payment date",
            severity=Severity.WARN,
            data={
                "invoiceEmailedAt": job.invoice_emailed_at,
                "customerPaymentDate": job.customer_payment_date,
            },
        )
    return None


def check_customer_before_vendor(job: JobSnapshot) -> Violation | None:
    if not job.vendor_payment_date:
        return None

    if not job.customer_payment_date:
        return Violation(
            code="CUSTOMER_BEFORE_VENDOR",
            message="Vendor paid before customer payment received",
            severity=Severity.ERROR,
            data={"vendorPaymentDate": job.vendor_payment_date, "customerPaymentDate": None},
        )

    if job.customer_payment_date > job.vendor_payment_date:
        return Violation(
            code="CUSTOMER_BEFORE_VENDOR",
            message="Customer payment date is after vendor payment date",
            severity=Severity.WARN,
            data={
                "customerPaymentDate": job.customer_payment_date,
                "vendorPaymentDate": job.vendor_payment_date,
            },
        )
    return None


def check_p1_bradford_required(job: JobSnapshot) -> Violation | None:
    if job.pathway == Pathway.P1 and job.vendor_payment_date and not job.bradford_payment_paid:
        return Violation(
            code="P1_BRADFORD_REQUIRED",
            message="P1 job has vendor payment but Bradford payment not recorded",
            severity=Severity.WARN,
            data={
                "pathway": job.pathway,
                "vendorPaymentDate": job.vendor_payment_date,
                "bradfordPaymentPaid": job.bradford_payment_paid,
            },
        )
    return None


def check_jd_invoice_chain(job: JobSnapshot) -> Violation | None:
    if not job.jd_payment_paid:
        return None

    missing = []
    if not job.jd_invoice_number:
        missing.append("jdInvoiceNumber")
    if not job.jd_invoice_generated_at:
        missing.append("jdInvoiceGeneratedAt")

    if missing:
        return Violation(
            code="JD_INVOICE_CHAIN",
            message=f"JD payment marked as paid but missing: {', '.join(missing)}",
            severity=Severity.ERROR,
            data={
                "jdPaymentPaid": job.jd_payment_paid,
                "jdInvoiceNumber": job.jd_invoice_number,
                "jdInvoiceGeneratedAt": job.jd_invoice_generated_at,
            },
        )
    return None


def check_pathway_vendor_count(job: JobSnapshot) -> Violation | None:
    if job.pathway != Pathway.P3 or not job.is_cost_final:
        return None

    vendor_ids = {po.target_vendor_id for po in job.purchase_orders if po.target_vendor_id}
    vendor_ids.update(c.vendor_id for c in job.components if c.vendor_id)

    if len(vendor_ids) < 2 and len(job.components) < 2:
        return Violation(
            code="PATHWAY_VENDOR_COUNT",
            message="P3 job should have multiple vendors or components",
            severity=Severity.WARN,
            data={
                "pathway": job.pathway,
                "distinctVendors": len(vendor_ids),
                "componentCount": len(job.components),
            },
        )
    return None


def check_po_cost_matches_split(job: JobSnapshot) -> Violation | None:
    if job.profit_split is None or not job.purchase_orders or not job.is_cost_final:
        return None

    split_total = _money(job.profit_split.total_cost)
    if split_total <= 0:
        # Zero split totals are reported by PROFITSPLIT_ZERO_WITH_PO_COST
        return None

    po_total, po_ids = _internal_po_cost(job)
    delta = abs(po_total - split_total)
    if delta <= COST_TOLERANCE:
        return None

    return Violation(
        code="PO_COST_MATCHES_SPLIT",
        message=(
            f"PO costs ({po_total:.2f}) don't match ProfitSplit.totalCost "
            f"({split_total:.2f}) - delta ${delta:.2f}"
        ),
        severity=Severity.WARN,
        data={
            "expected": split_total,
            "actual": po_total,
            "delta": delta,
            "poCount": len(po_ids),
            "poIds": po_ids,
            "totalPOsOnJob": len(job.purchase_orders),
            "excludedPOsCount": len(job.purchase_orders) - len(po_ids),
        },
    )


def check_profit_split_zero_with_po_cost(job: JobSnapshot) -> Violation | None:
    if not job.is_cost_final or not job.purchase_orders:
        return None

    split_total = _money(job.profit_split.total_cost if job.profit_split else None)
    po_total, po_ids = _internal_po_cost(job)

    if split_total == 0 and po_total > 0:
        return Violation(
            code="PROFITSPLIT_ZERO_WITH_PO_COST",
            message=f"ProfitSplit.totalCost is 0 but has ${po_total:.2f} in PO costs",
            severity=Severity.WARN,
            data={
                "splitTotalCost": Decimal("0"),
                "poCostSum": po_total,
                "poCount": len(po_ids),
                "poIds": po_ids,
                "hasProfitSplit": job.profit_split is not None,
            },
        )
    return None


def check_qc_ready_consistency(job: JobSnapshot) -> Violation | None:
    if job.readiness_status != ReadinessStatus.READY:
        return None

    pending = []
    if job.qc_artwork == QC_PENDING:
        pending.append("qcArtwork")
    if job.qc_data_files == QC_PENDING:
        pending.append("qcDataFiles")
    if job.qc_mailing == QC_MAILING_INCOMPLETE:
        pending.append("qcMailing")

    if pending:
        return Violation(
            code="QC_READY_CONSISTENCY",
            message=f"Job marked READY but has pending QC items: {', '.join(pending)}",
            severity=Severity.ERROR,
            data={
                "readinessStatus": job.readiness_status,
                "qcArtwork": job.qc_artwork,
                "qcDataFiles": job.qc_data_files,
                "qcMailing": job.qc_mailing,
                "pendingFlags": pending,
            },
        )
    return None


INVARIANTS: dict[str, InvariantCheck] = {
    "STATUS_WORKFLOW_MATCH": check_status_workflow_match,
    "OVERRIDE_HAS_TIMESTAMP": check_override_has_timestamp,
    "CANCELLED_IS_TERMINAL": check_cancelled_is_terminal,
    "INVOICE_BEFORE_PAYMENT": check_invoice_before_payment,
    "CUSTOMER_BEFORE_VENDOR": check_customer_before_vendor,
    "P1_BRADFORD_REQUIRED": check_p1_bradford_required,
    "JD_INVOICE_CHAIN": check_jd_invoice_chain,
    "PATHWAY_VENDOR_COUNT": check_pathway_vendor_count,
    "PO_COST_MATCHES_SPLIT": check_po_cost_matches_split,
    "PROFITSPLIT_ZERO_WITH_PO_COST": check_profit_split_zero_with_po_cost,
    "QC_READY_CONSISTENCY": check_qc_ready_consistency,
}


def run_invariants(job: JobSnapshot) -> list[Violation]:
    """Run every registered check against the snapshot."""
    violations = []
    for check in INVARIANTS.values():
        violation = check(job)
        if violation is not None:
            violations.append(violation)
    return violations


def job_not_found(job_id: str) -> Violation:
    return Violation(
        code="JOB_NOT_FOUND",
        message=f"Job with ID {job_id} not found",
        severity=Severity.ERROR,
    )
