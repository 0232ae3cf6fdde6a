"""
Data-access interfaces for the email sync feature.

Services depend on these protocols rather than on the database pool so they
can run against Postgres in production and in-memory fakes in tests.
"""

from datetime import datetime
from typing import Protocol

from app.features.email_sync.domain import (
    EmailThread,
    JobEvent,
    JobRef,
    JobSummary,
    NewEvent,
    WorkflowStage,
)


class ThreadRepository(Protocol):
    async def upsert(
        self,
        *,
        thread_id: str,
        first_message_id: str,
        subject_normalized: str,
        customer_domain: str | None,
        customer_po_number: str | None,
        last_message_at: datetime,
        synced_at: datetime,
    ) -> EmailThread:
        """Create the thread or refresh timestamps; PO/domain only fill blanks."""
        ...

    async def get(self, thread_id: str) -> EmailThread | None: ...

    async def link_to_job(self, thread_id: str, job_id: str) -> tuple[EmailThread | None, int]:
        """Set the thread's job and adopt its unlinked events. Returns (thread, events moved)."""
        ...

    async def list_orphans(self, limit: int) -> list[EmailThread]: ...


class EventRepository(Protocol):
    async def get(self, event_id: str) -> JobEvent | None: ...

    async def get_by_message_id(self, message_id: str) -> JobEvent | None: ...

    async def insert_if_absent(self, event: NewEvent) -> tuple[JobEvent, bool]:
        """Insert unless message_id exists. Returns (stored event, created)."""
        ...

    async def resolve_review(
        self, event_id: str, job_id: str | None, note: str | None
    ) -> JobEvent | None: ...

    async def list_needing_review(self, limit: int) -> list[JobEvent]: ...

    async def list_for_job(self, job_id: str) -> list[JobEvent]: ...


class JobRepository(Protocol):
    async def get_summary(self, job_id: str) -> JobSummary | None: ...

    async def find_by_po_number(self, po_number: str, created_after: datetime) -> list[JobRef]: ...

    async def compare_and_set_stage(
        self, job_id: str, expected: WorkflowStage, new_stage: WorkflowStage
    ) -> bool:
        """Write new_stage only if the stored stage still equals expected."""
        ...
