"""
Event store: idempotent job event ledger plus automatic stage updates.

Each inbound message produces at most one event (message_id is unique).
When a new event is linked to a job, is confident enough and is not flagged
for review, the status reducer decides whether the job's workflow stage
moves. Stage writes are compare-and-set on the current stage; a lost race
re-reads the job and decides again, up to STAGE_UPDATE_MAX_ATTEMPTS times.
"""

from app.config import settings
from app.features.email_sync.domain import (
    CreateEventResult,
    EventType,
    JobEvent,
    NewEvent,
    StageDecision,
    StageReplayResult,
)
from app.features.email_sync.domain.status_reducer import (
    compute_stage,
    process_single_event,
    should_auto_update,
)
from app.features.email_sync.errors import (
    EventNotFoundError,
    JobNotFoundError,
    ThreadNotFoundError,
)
from app.features.email_sync.repository import (
    EventRepository,
    JobRepository,
    PostgresEventRepository,
    PostgresJobRepository,
    PostgresThreadRepository,
    ThreadRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def drives_stage(event: JobEvent) -> bool:
    """True when an event is allowed to move its job's stage automatically."""
    return bool(event.job_id) and should_auto_update(event.confidence) and not event.needs_review


class EventService:
    DEFAULT_REVIEW_LIMIT = 50

    def __init__(
        self,
        events: EventRepository | None = None,
        threads: ThreadRepository | None = None,
        jobs: JobRepository | None = None,
        max_stage_attempts: int | None = None,
    ):
        self.events = events or PostgresEventRepository()
        self.threads = threads or PostgresThreadRepository()
        self.jobs = jobs or PostgresJobRepository()
        if max_stage_attempts is None:
            max_stage_attempts = settings.STAGE_UPDATE_MAX_ATTEMPTS
        self.max_stage_attempts = max_stage_attempts

    async def create_event(
        self,
        thread_id: str,
        message_id: str,
        type: EventType,
        confidence: float,
        source: str,
        signals: list[str] | None = None,
        links: list[str] | None = None,
        job_id: str | None = None,
        needs_review: bool = False,
        review_note: str | None = None,
    ) -> CreateEventResult:
        """
        Record an event for a message.

        Returns the stored event, whether it was newly created, and whether the
        job's stage changed. A repeated message_id returns the existing event
        untouched with created=False and status_updated=False.

        Raises:
            ThreadNotFoundError: The thread was never upserted.
        """
        existing = await self.events.get_by_message_id(message_id)
        if existing:
            logger.info("Duplicate event ignored", message_id=message_id, event_id=existing.id)
            return CreateEventResult(event=existing, created=False, status_updated=False)

        thread = await self.threads.get(thread_id)
        if thread is None:
            raise ThreadNotFoundError(thread_id)

        event, created = await self.events.insert_if_absent(
            NewEvent(
                message_id=message_id,
                thread_id=thread_id,
                type=EventType(type),
                confidence=confidence,
                source=source,
                signals=list(signals or []),
                links=list(links or []),
                job_id=job_id or thread.job_id,
                needs_review=needs_review,
                review_note=review_note,
            )
        )
        if not created:
            return CreateEventResult(event=event, created=False, status_updated=False)

        logger.info(
            "Event recorded",
            event_id=event.id,
            message_id=message_id,
            thread_id=thread_id,
            job_id=event.job_id,
            type=event.type.value,
            confidence=event.confidence,
            needs_review=event.needs_review,
        )

        if not drives_stage(event):
            return CreateEventResult(event=event, created=True, status_updated=False)

        decision, updated = await self._apply_event(event)
        return CreateEventResult(
            event=event,
            created=True,
            status_updated=updated,
            decision=decision,
        )

    async def _apply_event(self, event: JobEvent) -> tuple[StageDecision | None, bool]:
        decision = None
        for attempt in range(1, self.max_stage_attempts + 1):
            job = await self.jobs.get_summary(event.job_id)
            if job is None:
                logger.warning("Event references unknown job", event_id=event.id, job_id=event.job_id)
                return None, False

            decision = process_single_event(event.type, job.workflow_status)
            if not decision.should_update:
                logger.info(
                    "Stage not updated",
                    job_id=job.id,
                    job_no=job.job_no,
                    event_type=event.type.value,
                    reason=decision.reason,
                )
                return decision, False

            if await self.jobs.compare_and_set_stage(
                job.id, decision.current_stage, decision.new_stage
            ):
                logger.info(
                    "Stage updated",
                    job_id=job.id,
                    job_no=job.job_no,
                    from_stage=decision.current_stage.value,
                    to_stage=decision.new_stage.value,
                    reason=decision.reason,
                )
                return decision, True

            logger.info(
                "Stage changed concurrently, re-deciding",
                job_id=job.id,
                attempt=attempt,
            )

        logger.warning(
            "Stage update abandoned after concurrent changes",
            job_id=event.job_id,
            event_id=event.id,
            attempts=self.max_stage_attempts,
        )
        return decision, False

    async def resolve_event_review(
        self,
        event_id: str,
        job_id: str | None = None,
        note: str | None = None,
    ) -> JobEvent:
        """Clear the review flag, optionally attributing the event to a job."""
        if await self.events.get(event_id) is None:
            raise EventNotFoundError(event_id)
        if job_id and await self.jobs.get_summary(job_id) is None:
            raise JobNotFoundError(job_id)

        event = await self.events.resolve_review(event_id, job_id, note)
        if event is None:
            raise EventNotFoundError(event_id)

        logger.info("Event review resolved", event_id=event_id, job_id=event.job_id)
        return event

    async def list_events_needing_review(self, limit: int = DEFAULT_REVIEW_LIMIT) -> list[JobEvent]:
        return await self.events.list_needing_review(limit)

    async def replay_job_stage(self, job_id: str, apply: bool = False) -> StageReplayResult:
        """
        Recompute a job's stage from its whole event history.

        Only events that would have been allowed to drive the stage on arrival
        are replayed. With apply=True a positive decision is written using the
        same compare-and-set as incremental updates.
        """
        job = await self.jobs.get_summary(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        history = [event for event in await self.events.list_for_job(job_id) if drives_stage(event)]
        decision = compute_stage(history, job.workflow_status)

        applied = False
        if apply and decision.should_update:
            applied = await self.jobs.compare_and_set_stage(
                job.id, decision.current_stage, decision.new_stage
            )

        logger.info(
            "Stage replayed",
            job_id=job_id,
            events=len(history),
            current_stage=decision.current_stage.value,
            computed_stage=decision.new_stage.value,
            should_update=decision.should_update,
            applied=applied,
            reason=decision.reason,
        )
        return StageReplayResult(
            job_id=job_id,
            event_count=len(history),
            decision=decision,
            applied=applied,
        )


event_service = EventService()
