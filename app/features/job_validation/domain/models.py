"""
Domain models for job validation.

JobSnapshot is a read-only copy of the job columns, purchase orders,
components and profit split that the invariant checks look at.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from app.features.email_sync.domain import JobStatus, WorkflowStage

# Purchase orders originated by the broker itself; only these count as job cost
INTERNAL_COMPANY_ID = "impact-direct"


class Severity(StrEnum):
    WARN = "WARN"
    ERROR = "ERROR"


class Pathway(StrEnum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class ReadinessStatus(StrEnum):
    INCOMPLETE = "INCOMPLETE"
    READY = "READY"
    SENT = "SENT"


class PurchaseOrderStatus(StrEnum):
    PENDING = "PENDING"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"


INACTIVE_PO_STATUSES = frozenset({PurchaseOrderStatus.CANCELLED, PurchaseOrderStatus.REJECTED})

# Stages after which job costs are considered final
COST_FINAL_STAGES = frozenset(
    {WorkflowStage.COMPLETED, WorkflowStage.INVOICED, WorkflowStage.PAID}
)


@dataclass(slots=True)
class PurchaseOrderRecord:
    id: str
    status: str
    origin_company_id: str | None = None
    target_vendor_id: str | None = None
    buy_cost: Decimal | None = None

    @property
    def is_active_internal(self) -> bool:
        return self.origin_company_id == INTERNAL_COMPANY_ID and self.status not in INACTIVE_PO_STATUSES


@dataclass(slots=True)
class JobComponentRecord:
    id: str
    vendor_id: str | None = None


@dataclass(slots=True)
class ProfitSplitRecord:
    total_cost: Decimal | None = None


@dataclass(slots=True)
class JobSnapshot:
    id: str
    job_no: str
    status: JobStatus
    workflow_status: WorkflowStage
    workflow_status_override: str | None = None
    workflow_status_override_at: datetime | None = None
    invoice_emailed_at: datetime | None = None
    customer_payment_date: datetime | None = None
    vendor_payment_date: datetime | None = None
    bradford_payment_paid: bool = False
    jd_payment_paid: bool = False
    jd_invoice_number: str | None = None
    jd_invoice_generated_at: datetime | None = None
    pathway: str | None = None
    readiness_status: str | None = None
    qc_artwork: str | None = None
    qc_data_files: str | None = None
    qc_mailing: str | None = None
    purchase_orders: list[PurchaseOrderRecord] = field(default_factory=list)
    components: list[JobComponentRecord] = field(default_factory=list)
    profit_split: ProfitSplitRecord | None = None

    @property
    def is_cost_final(self) -> bool:
        return self.workflow_status in COST_FINAL_STAGES

    def active_internal_pos(self) -> list[PurchaseOrderRecord]:
        return [po for po in self.purchase_orders if po.is_active_internal]


@dataclass(slots=True)
class RecentJob:
    id: str
    job_no: str


@dataclass(slots=True)
class Violation:
    code: str
    message: str
    severity: Severity
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ValidationResult:
    ok: bool
    job_id: str
    violations: list[Violation]
    checked_at: datetime
    job_no: str | None = None

    @property
    def has_errors(self) -> bool:
        return any(v.severity is Severity.ERROR for v in self.violations)
