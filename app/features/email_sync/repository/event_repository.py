"""
Postgres persistence for the job event ledger.

Expected table:
    job_events(id uuid pk, message_id text unique, thread_id text
               references email_threads(thread_id), job_id text null,
               type text, confidence double precision, source text,
               signals text[], links text[], needs_review boolean,
               review_note text, created_at timestamptz default now())
"""

from app.db.helpers import fetch_all, fetch_one
from app.features.email_sync.domain import EventType, JobEvent, NewEvent
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

EVENT_COLUMNS = """
    e.id, e.message_id, e.thread_id, e.job_id, e.type, e.confidence,
    e.source, e.signals, e.links, e.needs_review, e.review_note,
    e.created_at, j.job_no, t.subject_normalized
"""

EVENT_JOINS = """
    LEFT JOIN jobs j ON j.id = e.job_id
    LEFT JOIN email_threads t ON t.thread_id = e.thread_id
"""


def row_to_event(row: dict | None) -> JobEvent | None:
    if not row:
        return None

    return JobEvent(
        id=str(row["id"]),
        message_id=row["message_id"],
        thread_id=row["thread_id"],
        type=EventType(row["type"]),
        confidence=row["confidence"],
        source=row["source"],
        created_at=row["created_at"],
        signals=list(row.get("signals") or []),
        links=list(row.get("links") or []),
        job_id=str(row["job_id"]) if row.get("job_id") else None,
        needs_review=bool(row.get("needs_review")),
        review_note=row.get("review_note"),
        job_no=row.get("job_no"),
        thread_subject=row.get("subject_normalized"),
    )


class PostgresEventRepository:
    """job_events access backed by the shared connection pool."""

    async def get(self, event_id: str) -> JobEvent | None:
        query = f"SELECT {EVENT_COLUMNS} FROM job_events e {EVENT_JOINS} WHERE e.id = %s"
        return row_to_event(await fetch_one(query, (event_id,)))

    async def get_by_message_id(self, message_id: str) -> JobEvent | None:
        query = f"SELECT {EVENT_COLUMNS} FROM job_events e {EVENT_JOINS} WHERE e.message_id = %s"
        return row_to_event(await fetch_one(query, (message_id,)))

    async def insert_if_absent(self, event: NewEvent) -> tuple[JobEvent, bool]:
        query = f"""
            WITH e AS (
                INSERT INTO job_events (
                    message_id, thread_id, job_id, type, confidence, source,
                    signals, links, needs_review, review_note
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (message_id) DO NOTHING
                RETURNING *
            )
            SELECT {EVENT_COLUMNS}
            FROM e
            {EVENT_JOINS}
        """

        row = await fetch_one(
            query,
            (
                event.message_id,
                event.thread_id,
                event.job_id,
                event.type.value,
                event.confidence,
                event.source,
                list(event.signals),
                list(event.links),
                event.needs_review,
                event.review_note,
            ),
        )
        if row:
            return row_to_event(row), True

        # Lost the race to a concurrent delivery of the same message
        existing = await self.get_by_message_id(event.message_id)
        logger.info("Event insert skipped, message already recorded", message_id=event.message_id)
        return existing, False

    async def resolve_review(
        self, event_id: str, job_id: str | None, note: str | None
    ) -> JobEvent | None:
        query = f"""
            WITH e AS (
                UPDATE job_events
                SET needs_review = false,
                    job_id = COALESCE(%s, job_id),
                    review_note = COALESCE(%s, review_note)
                WHERE id = %s
                RETURNING *
            )
            SELECT {EVENT_COLUMNS}
            FROM e
            {EVENT_JOINS}
        """
        return row_to_event(await fetch_one(query, (job_id, note, event_id)))

    async def list_needing_review(self, limit: int) -> list[JobEvent]:
        query = f"""
            SELECT {EVENT_COLUMNS}
            FROM job_events e
            {EVENT_JOINS}
            WHERE e.needs_review = true
            ORDER BY e.created_at DESC
            LIMIT %s
        """
        return [row_to_event(row) for row in await fetch_all(query, (limit,))]

    async def list_for_job(self, job_id: str) -> list[JobEvent]:
        query = f"""
            SELECT {EVENT_COLUMNS}
            FROM job_events e
            {EVENT_JOINS}
            WHERE e.job_id = %s
            ORDER BY e.created_at ASC
        """
        return [row_to_event(row) for row in await fetch_all(query, (job_id,))]
