"""
Read-only loading of job snapshots for validation.

Reads:
    jobs(id, job_no, status, workflow_status, workflow_status_override,
         workflow_status_override_at, invoice_emailed_at,
         customer_payment_date, vendor_payment_date, bradford_payment_paid,
         jd_payment_paid, jd_invoice_number, jd_invoice_generated_at,
         pathway, readiness_status, qc_artwork, qc_data_files, qc_mailing,
         created_at, deleted_at)
    purchase_orders(id, job_id, origin_company_id, target_vendor_id, status, buy_cost)
    job_components(id, job_id, vendor_id)
    profit_splits(job_id, total_cost)
"""

from typing import Protocol

from app.db.helpers import fetch_all, fetch_one, with_db_retry
from app.features.email_sync.domain import JobStatus, WorkflowStage
from app.features.job_validation.domain import (
    JobComponentRecord,
    JobSnapshot,
    ProfitSplitRecord,
    PurchaseOrderRecord,
    RecentJob,
)


class JobSnapshotRepository(Protocol):
    async def get_snapshot(self, job_id: str) -> JobSnapshot | None: ...

    async def list_recent_jobs(self, limit: int) -> list[RecentJob]: ...


class PostgresJobSnapshotRepository:
    @with_db_retry()
    async def get_snapshot(self, job_id: str) -> JobSnapshot | None:
        job = await fetch_one(
            """
            SELECT id, job_no, status, workflow_status,
                   workflow_status_override, workflow_status_override_at,
                   invoice_emailed_at, customer_payment_date, vendor_payment_date,
                   bradford_payment_paid, jd_payment_paid,
                   jd_invoice_number, jd_invoice_generated_at,
                   pathway, readiness_status,
                   qc_artwork, qc_data_files, qc_mailing
            FROM jobs
            WHERE id = %s
            """,
            (job_id,),
        )
        if not job:
            return None

        po_rows = await fetch_all(
            """
            SELECT id, origin_company_id, target_vendor_id, status, buy_cost
            FROM purchase_orders
            WHERE job_id = %s
            ORDER BY id
            """,
            (job_id,),
        )
        component_rows = await fetch_all(
            "SELECT id, vendor_id FROM job_components WHERE job_id = %s ORDER BY id",
            (job_id,),
        )
        split_row = await fetch_one(
            "SELECT total_cost FROM profit_splits WHERE job_id = %s",
            (job_id,),
        )

        return JobSnapshot(
            id=str(job["id"]),
            job_no=job["job_no"],
            status=JobStatus(job["status"]),
            workflow_status=WorkflowStage(job["workflow_status"]),
            workflow_status_override=job.get("workflow_status_override"),
            workflow_status_override_at=job.get("workflow_status_override_at"),
            invoice_emailed_at=job.get("invoice_emailed_at"),
            customer_payment_date=job.get("customer_payment_date"),
            vendor_payment_date=job.get("vendor_payment_date"),
            bradford_payment_paid=bool(job.get("bradford_payment_paid")),
            jd_payment_paid=bool(job.get("jd_payment_paid")),
            jd_invoice_number=job.get("jd_invoice_number"),
            jd_invoice_generated_at=job.get("jd_invoice_generated_at"),
            pathway=job.get("pathway"),
            readiness_status=job.get("readiness_status"),
            qc_artwork=job.get("qc_artwork"),
            qc_data_files=job.get("qc_data_files"),
            qc_mailing=job.get("qc_mailing"),
            purchase_orders=[
                PurchaseOrderRecord(
                    id=str(row["id"]),
                    status=row["status"],
                    origin_company_id=row.get("origin_company_id"),
                    target_vendor_id=row.get("target_vendor_id"),
                    buy_cost=row.get("buy_cost"),
                )
                for row in po_rows
            ],
            components=[
                JobComponentRecord(id=str(row["id"]), vendor_id=row.get("vendor_id"))
                for row in component_rows
            ],
            profit_split=ProfitSplitRecord(total_cost=split_row.get("total_cost"))
            if split_row
            else None,
        )

    @with_db_retry()
    async def list_recent_jobs(self, limit: int) -> list[RecentJob]:
        rows = await fetch_all(
            """
            SELECT id, job_no
            FROM jobs
            WHERE deleted_at IS NULL
            ORDER BY created_at DESC
            LIMIT %s
            """,
            (limit,),
        )
        return [RecentJob(id=str(row["id"]), job_no=row["job_no"]) for row in rows]
