"""
Thread registry: one record per external email conversation.
"""

from datetime import UTC, datetime

from app.features.email_sync.domain import EmailThread
from app.features.email_sync.domain.patterns import (
    extract_domain,
    extract_po_number,
    normalize_subject,
)
from app.features.email_sync.errors import JobNotFoundError, ThreadNotFoundError
from app.features.email_sync.repository import (
    JobRepository,
    PostgresJobRepository,
    PostgresThreadRepository,
    ThreadRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class ThreadService:
    DEFAULT_ORPHAN_LIMIT = 50

    def __init__(
        self,
        threads: ThreadRepository | None = None,
        jobs: JobRepository | None = None,
    ):
        self.threads = threads or PostgresThreadRepository()
        self.jobs = jobs or PostgresJobRepository()

    async def upsert_thread(
        self,
        thread_id: str,
        first_message_id: str,
        subject: str,
        from_address: str,
        explicit_po: str | None = None,
        last_message_at: datetime | None = None,
    ) -> EmailThread:
        """
        Record a sighting of a thread.

        An explicit PO number beats one extracted from the subject. On later
        sightings only the timestamps move; PO number and sender domain keep
        the first values seen and are only filled in while still empty.
        """
        now = datetime.now(UTC)
        po_number = explicit_po.strip() if explicit_po and explicit_po.strip() else None
        if po_number is None:
            po_number = extract_po_number(subject)

        thread = await self.threads.upsert(
            thread_id=thread_id,
            first_message_id=first_message_id,
            subject_normalized=normalize_subject(subject),
            customer_domain=extract_domain(from_address),
            customer_po_number=po_number,
            last_message_at=last_message_at or now,
            synced_at=now,
        )

        logger.info(
            "Thread upserted",
            thread_id=thread_id,
            po_number=thread.customer_po_number,
            job_id=thread.job_id,
        )
        return thread

    async def link_thread_to_job(self, thread_id: str, job_id: str) -> EmailThread:
        """Attach a thread to a job and adopt the thread's unlinked events."""
        if await self.threads.get(thread_id) is None:
            raise ThreadNotFoundError(thread_id)
        if await self.jobs.get_summary(job_id) is None:
            raise JobNotFoundError(job_id)

        thread, reassigned = await self.threads.link_to_job(thread_id, job_id)
        if thread is None:
            # Deleted between the existence check and the update
            raise ThreadNotFoundError(thread_id)

        logger.info(
            "Thread linked",
            thread_id=thread_id,
            job_id=job_id,
            reassigned_events=reassigned,
        )
        return thread

    async def list_orphan_threads(self, limit: int = DEFAULT_ORPHAN_LIMIT) -> list[EmailThread]:
        return await self.threads.list_orphans(limit)


thread_service = ThreadService()
