"""
Postgres persistence for email threads.

Expected table:
    email_threads(id uuid pk, thread_id text unique, first_message_id text,
                  subject_normalized text, customer_domain text,
                  customer_po_number text, job_id text null,
                  last_message_at timestamptz, last_synced_at timestamptz,
                  created_at timestamptz default now())
"""

from datetime import datetime

from app.db.helpers import execute_query, fetch_all, fetch_one
from app.db.pool import db_pool
from app.features.email_sync.domain import EmailThread, JobSummary, WorkflowStage
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

THREAD_COLUMNS = """
    t.id, t.thread_id, t.first_message_id, t.subject_normalized,
    t.customer_domain, t.customer_po_number, t.job_id,
    t.last_message_at, t.last_synced_at, t.created_at,
    j.job_no, j.workflow_status
"""


def row_to_thread(row: dict | None) -> EmailThread | None:
    if not row:
        return None

    job = None
    if row.get("job_id") and row.get("job_no"):
        job = JobSummary(
            id=str(row["job_id"]),
            job_no=row["job_no"],
            workflow_status=WorkflowStage(row["workflow_status"]),
        )

    return EmailThread(
        id=str(row["id"]),
        thread_id=row["thread_id"],
        first_message_id=row["first_message_id"],
        subject_normalized=row["subject_normalized"],
        customer_domain=row.get("customer_domain"),
        customer_po_number=row.get("customer_po_number"),
        job_id=str(row["job_id"]) if row.get("job_id") else None,
        last_message_at=row["last_message_at"],
        last_synced_at=row["last_synced_at"],
        created_at=row["created_at"],
        job=job,
    )


class PostgresThreadRepository:
    """email_threads access backed by the shared connection pool."""

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
        # Single statement so two first sightings of a thread collapse to one row
        query = f"""
            WITH t AS (
                INSERT INTO email_threads (
                    thread_id, first_message_id, subject_normalized,
                    customer_domain, customer_po_number,
                    last_message_at, last_synced_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (thread_id) DO UPDATE SET
                    last_message_at = EXCLUDED.last_message_at,
                    last_synced_at = EXCLUDED.last_synced_at,
                    customer_po_number = COALESCE(
                        email_threads.customer_po_number, EXCLUDED.customer_po_number
                    ),
                    customer_domain = COALESCE(
                        email_threads.customer_domain, EXCLUDED.customer_domain
                    )
                RETURNING *
            )
            SELECT {THREAD_COLUMNS}
            FROM t
            LEFT JOIN jobs j ON j.id = t.job_id
        """

        row = await fetch_one(
            query,
            (
                thread_id,
                first_message_id,
                subject_normalized,
                customer_domain,
                customer_po_number,
                last_message_at,
                synced_at,
            ),
        )
        return row_to_thread(row)

    async def get(self, thread_id: str) -> EmailThread | None:
        query = f"""
            SELECT {THREAD_COLUMNS}
            FROM email_threads t
            LEFT JOIN jobs j ON j.id = t.job_id
            WHERE t.thread_id = %s
        """
        return row_to_thread(await fetch_one(query, (thread_id,)))

    async def link_to_job(self, thread_id: str, job_id: str) -> tuple[EmailThread | None, int]:
        async with db_pool.transaction() as conn:
            updated = await fetch_one(
                "UPDATE email_threads SET job_id = %s WHERE thread_id = %s RETURNING id",
                (job_id, thread_id),
                connection=conn,
            )
            if not updated:
                return None, 0

            reassigned = await execute_query(
                """
                UPDATE job_events
                SET job_id = %s
                WHERE thread_id = %s
                  AND job_id IS NULL
                """,
                (job_id, thread_id),
                connection=conn,
            )

            row = await fetch_one(
                f"""
                SELECT {THREAD_COLUMNS}
                FROM email_threads t
                LEFT JOIN jobs j ON j.id = t.job_id
                WHERE t.thread_id = %s
                """,
                (thread_id,),
                connection=conn,
            )

        logger.info(
            "Thread linked to job",
            thread_id=thread_id,
            job_id=job_id,
            reassigned_events=reassigned,
        )
        return row_to_thread(row), reassigned

    async def list_orphans(self, limit: int) -> list[EmailThread]:
        query = f"""
            SELECT {THREAD_COLUMNS}
            FROM email_threads t
            LEFT JOIN jobs j ON j.id = t.job_id
            WHERE t.job_id IS NULL
            ORDER BY t.created_at DESC
            LIMIT %s
        """
        rows = await fetch_all(query, (limit,))
        return [row_to_thread(row) for row in rows]
