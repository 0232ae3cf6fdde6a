"""
Read access to jobs for matching, plus the single stage column this feature writes.

Only these columns of the wider schema are touched:
    jobs(id, job_no, customer_po_number, customer_id, workflow_status,
         workflow_updated_at, created_at, deleted_at)
    companies(id, email)
"""

from datetime import datetime

from app.db.helpers import execute_query, fetch_all, fetch_one
from app.features.email_sync.domain import JobRef, JobSummary, WorkflowStage


class PostgresJobRepository:
    async def get_summary(self, job_id: str) -> JobSummary | None:
        row = await fetch_one(
            """
            SELECT id, job_no, workflow_status
            FROM jobs
            WHERE id = %s
              AND deleted_at IS NULL
            """,
            (job_id,),
        )
        if not row:
            return None
        return JobSummary(
            id=str(row["id"]),
            job_no=row["job_no"],
            workflow_status=WorkflowStage(row["workflow_status"]),
        )

    async def find_by_po_number(self, po_number: str, created_after: datetime) -> list[JobRef]:
        rows = await fetch_all(
            """
            SELECT j.id, j.job_no, j.customer_po_number, j.workflow_status,
                   j.created_at, c.email AS customer_email
            FROM jobs j
            LEFT JOIN companies c ON c.id = j.customer_id
            WHERE j.customer_po_number = %s
              AND j.created_at >= %s
              AND j.deleted_at IS NULL
            ORDER BY j.created_at DESC
            """,
            (po_number, created_after),
        )
        return [
            JobRef(
                id=str(row["id"]),
                job_no=row["job_no"],
                customer_po_number=row["customer_po_number"],
                customer_email=row.get("customer_email"),
                created_at=row["created_at"],
                workflow_status=WorkflowStage(row["workflow_status"]),
            )
            for row in rows
        ]

    async def compare_and_set_stage(
        self, job_id: str, expected: WorkflowStage, new_stage: WorkflowStage
    ) -> bool:
        updated = await execute_query(
            """
            UPDATE jobs
            SET workflow_status = %s,
                workflow_updated_at = NOW()
            WHERE id = %s
              AND workflow_status = %s
            """,
            (new_stage.value, job_id, expected.value),
        )
        return updated == 1
