"""
Email sync API request/response models.

Wire format is camelCase; Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.features.email_sync.domain import (
    EmailThread,
    EventType,
    JobEvent,
    MatchMethod,
    MatchResult,
    StageReplayResult,
    WorkflowStage,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class UpsertThreadRequest(CamelModel):
    thread_id: str = Field(..., min_length=1)
    first_message_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    from_address: str = Field(..., alias="from", min_length=1)
    customer_po_number: str | None = Field(default=None, alias="customerPONumber")
    last_message_at: datetime | None = None


class CreateEventRequest(CamelModel):
    thread_id: str = Field(..., min_length=1)
    message_id: str = Field(..., min_length=1)
    type: EventType
    confidence: float = Field(..., allow_inf_nan=False)
    source: str = Field(..., min_length=1)
    signals: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    job_id: str | None = None
    needs_review: bool = False
    review_note: str | None = None


class MatchRequest(CamelModel):
    thread_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    from_address: str = Field(..., alias="from", min_length=1)
    body: str | None = None
    customer_po_number: str | None = Field(default=None, alias="customerPONumber")


class LinkThreadRequest(CamelModel):
    thread_id: str = Field(..., min_length=1)
    job_id: str = Field(..., min_length=1)


class ResolveReviewRequest(CamelModel):
    event_id: str = Field(..., min_length=1)
    job_id: str | None = None
    note: str | None = None


class ClassifyRequest(CamelModel):
    subject: str | None = None
    body: str | None = None

    @model_validator(mode="after")
    def require_text(self) -> "ClassifyRequest":
        if not self.subject and not self.body:
            raise ValueError("At least one of subject or body is required")
        return self


class ReplayStageRequest(CamelModel):
    job_id: str = Field(..., min_length=1)
    apply: bool = False


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ThreadSummary(CamelModel):
    id: str
    thread_id: str
    job_id: str | None
    job_no: str | None
    workflow_status: WorkflowStage | None = None
    customer_po_number: str | None = Field(default=None, alias="customerPONumber")
    customer_domain: str | None = None
    subject_normalized: str
    last_message_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_thread(cls, thread: EmailThread) -> "ThreadSummary":
        return cls(
            id=thread.id,
            thread_id=thread.thread_id,
            job_id=thread.job_id,
            job_no=thread.job.job_no if thread.job else None,
            workflow_status=thread.job.workflow_status if thread.job else None,
            customer_po_number=thread.customer_po_number,
            customer_domain=thread.customer_domain,
            subject_normalized=thread.subject_normalized,
            last_message_at=thread.last_message_at,
            created_at=thread.created_at,
        )


class EventSummary(CamelModel):
    id: str
    message_id: str
    thread_id: str
    type: EventType
    confidence: float
    source: str
    signals: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)
    job_id: str | None
    job_no: str | None
    needs_review: bool
    review_note: str | None
    subject: str | None = None
    created_at: datetime

    @classmethod
    def from_event(cls, event: JobEvent) -> "EventSummary":
        return cls(
            id=event.id,
            message_id=event.message_id,
            thread_id=event.thread_id,
            type=event.type,
            confidence=event.confidence,
            source=event.source,
            signals=event.signals,
            links=event.links,
            job_id=event.job_id,
            job_no=event.job_no,
            needs_review=event.needs_review,
            review_note=event.review_note,
            subject=event.thread_subject,
            created_at=event.created_at,
        )


class ThreadResponse(CamelModel):
    success: bool = True
    thread: ThreadSummary


class CreateEventResponse(CamelModel):
    success: bool = True
    created: bool
    status_updated: bool
    reason: str | None = None
    event: EventSummary


class CandidateSummary(CamelModel):
    id: str
    job_no: str
    customer_po_number: str | None = Field(default=None, alias="customerPONumber")


class MatchSummary(CamelModel):
    job_id: str | None
    job_no: str | None
    confidence: float
    method: MatchMethod
    candidates: list[CandidateSummary] | None = None

    @classmethod
    def from_result(cls, result: MatchResult) -> "MatchSummary":
        candidates = None
        if result.candidates is not None:
            candidates = [
                CandidateSummary(
                    id=candidate.id,
                    job_no=candidate.job_no,
                    customer_po_number=candidate.customer_po_number,
                )
                for candidate in result.candidates
            ]
        return cls(
            job_id=result.job_id,
            job_no=result.job_no,
            confidence=result.confidence,
            method=result.method,
            candidates=candidates,
        )


class MatchResponse(CamelModel):
    success: bool = True
    match: MatchSummary


class NeedsReviewResponse(CamelModel):
    success: bool = True
    events_needing_review: list[EventSummary]
    orphan_threads: list[ThreadSummary]


class EventResponse(CamelModel):
    success: bool = True
    event: EventSummary


class ExtractedText(CamelModel):
    po_number: str | None
    proof_links: list[str]


class ClassifyResponse(CamelModel):
    success: bool = True
    extracted: ExtractedText


class StageReplayResponse(CamelModel):
    success: bool = True
    job_id: str
    event_count: int
    current_stage: WorkflowStage
    computed_stage: WorkflowStage
    should_update: bool
    is_regression: bool
    applied: bool
    reason: str

    @classmethod
    def from_result(cls, result: StageReplayResult) -> "StageReplayResponse":
        decision = result.decision
        return cls(
            job_id=result.job_id,
            event_count=result.event_count,
            current_stage=decision.current_stage,
            computed_stage=decision.new_stage,
            should_update=decision.should_update,
            is_regression=decision.is_regression,
            applied=result.applied,
            reason=decision.reason,
        )


class EmailSyncHealthResponse(CamelModel):
    success: bool = True
    service: str = "email-sync"
    timestamp: datetime
    secret_configured: bool
