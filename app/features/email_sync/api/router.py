"""
Email sync webhook routes.

Called by the upstream mail automation. Every route except /health needs
the shared secret in the x-webhook-secret header.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.auth.verify import require_webhook_secret
from app.config import settings
from app.features.email_sync.domain.patterns import extract_links, extract_po_number
from app.features.email_sync.errors import EmailSyncError
from app.features.email_sync.services import (
    EventService,
    MatchService,
    ThreadService,
    event_service,
    match_service,
    thread_service,
)
from app.infrastructure.observability.logging import get_logger

from .schemas import (
    ClassifyRequest,
    ClassifyResponse,
    CreateEventRequest,
    CreateEventResponse,
    EmailSyncHealthResponse,
    EventResponse,
    EventSummary,
    ExtractedText,
    LinkThreadRequest,
    MatchRequest,
    MatchResponse,
    MatchSummary,
    NeedsReviewResponse,
    ReplayStageRequest,
    ResolveReviewRequest,
    StageReplayResponse,
    ThreadResponse,
    ThreadSummary,
    UpsertThreadRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/email-sync", tags=["email-sync"])

WebhookAuth = Depends(require_webhook_secret)


def get_thread_service() -> ThreadService:
    return thread_service


def get_match_service() -> MatchService:
    return match_service


def get_event_service() -> EventService:
    return event_service


def not_found(error: EmailSyncError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


@router.post("/thread", response_model=ThreadResponse, dependencies=[WebhookAuth])
async def upsert_thread(
    request: UpsertThreadRequest,
    service: ThreadService = Depends(get_thread_service),
):
    """Create or refresh the record for an email thread."""
    thread = await service.upsert_thread(
        thread_id=request.thread_id,
        first_message_id=request.first_message_id,
        subject=request.subject,
        from_address=request.from_address,
        explicit_po=request.customer_po_number,
        last_message_at=request.last_message_at,
    )
    return ThreadResponse(thread=ThreadSummary.from_thread(thread))


@router.post("/event", response_model=CreateEventResponse, dependencies=[WebhookAuth])
async def create_event(
    request: CreateEventRequest,
    service: EventService = Depends(get_event_service),
):
    """Record an event for a message (idempotent on messageId)."""
    try:
        result = await service.create_event(
            thread_id=request.thread_id,
            message_id=request.message_id,
            type=request.type,
            confidence=request.confidence,
            source=request.source,
            signals=request.signals,
            links=request.links,
            job_id=request.job_id,
            needs_review=request.needs_review,
            review_note=request.review_note,
        )
    except EmailSyncError as e:
        logger.warning("Event rejected", message_id=request.message_id, error=str(e))
        raise not_found(e) from e

    return CreateEventResponse(
        created=result.created,
        status_updated=result.status_updated,
        reason=result.decision.reason if result.decision else None,
        event=EventSummary.from_event(result.event),
    )


@router.post("/match", response_model=MatchResponse, dependencies=[WebhookAuth])
async def match_email(
    request: MatchRequest,
    service: MatchService = Depends(get_match_service),
):
    """Attribute an email to a job."""
    result = await service.match_to_job(
        thread_id=request.thread_id,
        subject=request.subject,
        from_address=request.from_address,
        body=request.body,
        explicit_po=request.customer_po_number,
    )
    return MatchResponse(match=MatchSummary.from_result(result))


@router.post("/link-thread", response_model=ThreadResponse, dependencies=[WebhookAuth])
async def link_thread(
    request: LinkThreadRequest,
    service: ThreadService = Depends(get_thread_service),
):
    """Link a thread to a job and adopt its unlinked events."""
    try:
        thread = await service.link_thread_to_job(request.thread_id, request.job_id)
    except EmailSyncError as e:
        raise not_found(e) from e

    return ThreadResponse(thread=ThreadSummary.from_thread(thread))


@router.get("/needs-review", response_model=NeedsReviewResponse, dependencies=[WebhookAuth])
async def needs_review(
    limit: int = Query(default=50, ge=1, le=200),
    events: EventService = Depends(get_event_service),
    threads: ThreadService = Depends(get_thread_service),
):
    """Events flagged for review and threads with no job, newest first."""
    flagged = await events.list_events_needing_review(limit)
    orphans = await threads.list_orphan_threads(limit)

    return NeedsReviewResponse(
        events_needing_review=[EventSummary.from_event(event) for event in flagged],
        orphan_threads=[ThreadSummary.from_thread(thread) for thread in orphans],
    )


@router.post("/resolve-review", response_model=EventResponse, dependencies=[WebhookAuth])
async def resolve_review(
    request: ResolveReviewRequest,
    service: EventService = Depends(get_event_service),
):
    try:
        event = await service.resolve_event_review(
            request.event_id, job_id=request.job_id, note=request.note
        )
    except EmailSyncError as e:
        raise not_found(e) from e

    return EventResponse(event=EventSummary.from_event(event))


@router.post("/classify", response_model=ClassifyResponse, dependencies=[WebhookAuth])
async def classify_text(request: ClassifyRequest):
    """Extract a PO number and proof links from text. Nothing is stored."""
    text = " ".join(part for part in (request.subject, request.body) if part)
    return ClassifyResponse(
        extracted=ExtractedText(
            po_number=extract_po_number(text),
            proof_links=extract_links(text),
        )
    )


@router.post("/replay-stage", response_model=StageReplayResponse, dependencies=[WebhookAuth])
async def replay_stage(
    request: ReplayStageRequest,
    service: EventService = Depends(get_event_service),
):
    """Recompute a job's stage from its event history, optionally applying it."""
    try:
        result = await service.replay_job_stage(request.job_id, apply=request.apply)
    except EmailSyncError as e:
        raise not_found(e) from e

    return StageReplayResponse.from_result(result)


@router.get("/health", response_model=EmailSyncHealthResponse)
async def email_sync_health():
    return EmailSyncHealthResponse(
        timestamp=datetime.now(UTC),
        secret_configured=settings.webhook_secret_configured(),
    )
