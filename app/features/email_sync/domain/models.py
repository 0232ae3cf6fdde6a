"""
Domain models for the email sync feature.

Threads and events are the two records this feature owns. Jobs belong to
the wider application; only the handful of job columns needed for matching
and stage updates are modelled here (JobRef / JobSummary).
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class WorkflowStage(StrEnum):
    """Job workflow stages, declared in progression order."""

    NEW_JOB = "NEW_JOB"
    AWAITING_PROOF_FROM_VENDOR = "AWAITING_PROOF_FROM_VENDOR"
    PROOF_RECEIVED = "PROOF_RECEIVED"
    PROOF_SENT_TO_CUSTOMER = "PROOF_SENT_TO_CUSTOMER"
    AWAITING_CUSTOMER_RESPONSE = "AWAITING_CUSTOMER_RESPONSE"
    APPROVED_PENDING_VENDOR = "APPROVED_PENDING_VENDOR"
    IN_PRODUCTION = "IN_PRODUCTION"
    COMPLETED = "COMPLETED"
    INVOICED = "INVOICED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class EventType(StrEnum):
    """Closed vocabulary of things that can happen to a job."""

    # Workflow
    JOB_CREATED = "JOB_CREATED"
    PO_SENT_TO_VENDOR = "PO_SENT_TO_VENDOR"
    PROOF_RECEIVED_FROM_VENDOR = "PROOF_RECEIVED_FROM_VENDOR"
    PROOF_SENT_TO_CUSTOMER = "PROOF_SENT_TO_CUSTOMER"
    REVISION_REQUEST = "REVISION_REQUEST"
    PROOF_APPROVED = "PROOF_APPROVED"
    APPROVAL_CONFIRMED = "APPROVAL_CONFIRMED"
    PRODUCTION_STARTED = "PRODUCTION_STARTED"
    SHIPPED = "SHIPPED"
    JOB_COMPLETED = "JOB_COMPLETED"

    # Payment flow
    INVOICE_SENT = "INVOICE_SENT"
    CUSTOMER_PAYMENT_RECEIVED = "CUSTOMER_PAYMENT_RECEIVED"
    VENDOR_PAYMENT_SENT = "VENDOR_PAYMENT_SENT"
    BRADFORD_PAYMENT_SENT = "BRADFORD_PAYMENT_SENT"
    JD_INVOICE_SENT = "JD_INVOICE_SENT"
    JD_PAYMENT_RECEIVED = "JD_PAYMENT_RECEIVED"

    # Documents
    PO_CREATED = "PO_CREATED"
    PROOF_UPLOADED = "PROOF_UPLOADED"
    INVOICE_GENERATED = "INVOICE_GENERATED"

    # System / misc
    JOB_LOCKED = "JOB_LOCKED"
    WORKFLOW_OVERRIDE = "WORKFLOW_OVERRIDE"
    QUESTION = "QUESTION"
    GENERAL_UPDATE = "GENERAL_UPDATE"
    OTHER = "OTHER"


class JobStatus(StrEnum):
    """Business status of a job (separate from the workflow stage)."""

    ACTIVE = "ACTIVE"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class MatchMethod(StrEnum):
    THREAD = "THREAD"
    PO_MATCH = "PO_MATCH"
    PO_DOMAIN = "PO_DOMAIN"
    MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
    NO_MATCH = "NO_MATCH"


def clamp_confidence(value: float) -> float:
    """Clamp a confidence score into [0.0, 1.0]. NaN counts as no confidence."""
    value = float(value)
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass(slots=True)
class JobSummary:
    """Minimal job view attached to threads and events."""

    id: str
    job_no: str
    workflow_status: WorkflowStage


@dataclass(slots=True)
class JobRef:
    """Job row as seen by the match engine."""

    id: str
    job_no: str
    customer_po_number: str | None
    customer_email: str | None
    created_at: datetime
    workflow_status: WorkflowStage = WorkflowStage.NEW_JOB


@dataclass(slots=True)
class EmailThread:
    """One tracked email conversation (email_threads row)."""

    id: str
    thread_id: str
    first_message_id: str
    subject_normalized: str
    customer_domain: str | None
    customer_po_number: str | None
    job_id: str | None
    last_message_at: datetime
    last_synced_at: datetime
    created_at: datetime
    job: JobSummary | None = None


@dataclass(slots=True)
class JobEvent:
    """Immutable ledger entry (job_events row)."""

    id: str
    message_id: str
    thread_id: str
    type: EventType
    confidence: float
    source: str
    created_at: datetime
    signals: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    job_id: str | None = None
    needs_review: bool = False
    review_note: str | None = None
    # Read-side enrichment, not stored on the event row
    job_no: str | None = None
    thread_subject: str | None = None

    def __post_init__(self) -> None:
        self.confidence = clamp_confidence(self.confidence)


@dataclass(slots=True)
class NewEvent:
    """Values for inserting an event; the store assigns id and created_at."""

    message_id: str
    thread_id: str
    type: EventType
    confidence: float
    source: str
    signals: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)
    job_id: str | None = None
    needs_review: bool = False
    review_note: str | None = None

    def __post_init__(self) -> None:
        self.confidence = clamp_confidence(self.confidence)


@dataclass(slots=True)
class MatchCandidate:
    id: str
    job_no: str
    customer_po_number: str | None


@dataclass(slots=True)
class MatchResult:
    job_id: str | None
    job_no: str | None
    confidence: float
    method: MatchMethod
    candidates: list[MatchCandidate] | None = None


@dataclass(slots=True)
class StageDecision:
    """Outcome of running the status reducer."""

    current_stage: WorkflowStage
    new_stage: WorkflowStage
    should_update: bool
    reason: str
    is_regression: bool


@dataclass(slots=True)
class CreateEventResult:
    event: JobEvent
    created: bool
    status_updated: bool
    decision: StageDecision | None = None


@dataclass(slots=True)
class StageReplayResult:
    """Outcome of replaying a job's full event history."""

    job_id: str
    event_count: int
    decision: StageDecision
    applied: bool
