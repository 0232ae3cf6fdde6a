from .models import (
    COST_FINAL_STAGES,
    INTERNAL_COMPANY_ID,
    JobComponentRecord,
    JobSnapshot,
    Pathway,
    ProfitSplitRecord,
    PurchaseOrderRecord,
    PurchaseOrderStatus,
    ReadinessStatus,
    RecentJob,
    Severity,
    ValidationResult,
    Violation,
)

__all__ = [
    "COST_FINAL_STAGES",
    "INTERNAL_COMPANY_ID",
    "JobComponentRecord",
    "JobSnapshot",
    "Pathway",
    "ProfitSplitRecord",
    "PurchaseOrderRecord",
    "PurchaseOrderStatus",
    "ReadinessStatus",
    "RecentJob",
    "Severity",
    "ValidationResult",
    "Violation",
]
