"""
Match engine: attribute an email to a job.

Cascade, first success wins:
    1. THREAD            thread already linked                 -> 1.0
    2. PO_MATCH          one job with the PO in the last 30d   -> 0.9
    3. PO_DOMAIN         several, one matches sender domain    -> 0.85
    4. MULTIPLE_MATCHES  still ambiguous, candidates returned  -> 0.0
    5. NO_MATCH          no PO or no job with it               -> 0.0

Confidence is fixed per method so auto-update gating stays predictable.
"""

from datetime import UTC, datetime, timedelta

from app.features.email_sync.domain import MatchCandidate, MatchMethod, MatchResult
from app.features.email_sync.domain.patterns import extract_domain, extract_po_number
from app.features.email_sync.repository import (
    JobRepository,
    PostgresJobRepository,
    PostgresThreadRepository,
    ThreadRepository,
)
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

THREAD_CONFIDENCE = 1.0
PO_MATCH_CONFIDENCE = 0.9
PO_DOMAIN_CONFIDENCE = 0.85
PO_MATCH_WINDOW = timedelta(days=30)


class MatchService:
    def __init__(
        self,
        threads: ThreadRepository | None = None,
        jobs: JobRepository | None = None,
    ):
        self.threads = threads or PostgresThreadRepository()
        self.jobs = jobs or PostgresJobRepository()

    async def match_to_job(
        self,
        thread_id: str,
        subject: str,
        from_address: str,
        body: str | None = None,
        explicit_po: str | None = None,
    ) -> MatchResult:
        thread = await self.threads.get(thread_id)
        if thread and thread.job_id:
            result = MatchResult(
                job_id=thread.job_id,
                job_no=thread.job.job_no if thread.job else None,
                confidence=THREAD_CONFIDENCE,
                method=MatchMethod.THREAD,
            )
            self._log(thread_id, result)
            return result

        po_number = explicit_po.strip() if explicit_po and explicit_po.strip() else None
        if po_number is None:
            po_number = extract_po_number(" ".join(part for part in (subject, body) if part))

        if not po_number:
            return self._no_match(thread_id)

        since = datetime.now(UTC) - PO_MATCH_WINDOW
        candidates = await self.jobs.find_by_po_number(po_number, since)

        if not candidates:
            return self._no_match(thread_id, po_number=po_number)

        if len(candidates) == 1:
            job = candidates[0]
            result = MatchResult(
                job_id=job.id,
                job_no=job.job_no,
                confidence=PO_MATCH_CONFIDENCE,
                method=MatchMethod.PO_MATCH,
            )
            self._log(thread_id, result, po_number=po_number)
            return result

        sender_domain = extract_domain(from_address)
        if sender_domain:
            same_domain = [
                job for job in candidates if extract_domain(job.customer_email) == sender_domain
            ]
            if len(same_domain) == 1:
                job = same_domain[0]
                result = MatchResult(
                    job_id=job.id,
                    job_no=job.job_no,
                    confidence=PO_DOMAIN_CONFIDENCE,
                    method=MatchMethod.PO_DOMAIN,
                )
                self._log(thread_id, result, po_number=po_number)
                return result

        result = MatchResult(
            job_id=None,
            job_no=None,
            confidence=0.0,
            method=MatchMethod.MULTIPLE_MATCHES,
            candidates=[
                MatchCandidate(
                    id=job.id,
                    job_no=job.job_no,
                    customer_po_number=job.customer_po_number,
                )
                for job in candidates
            ],
        )
        self._log(thread_id, result, po_number=po_number, candidate_count=len(candidates))
        return result

    def _no_match(self, thread_id: str, po_number: str | None = None) -> MatchResult:
        result = MatchResult(job_id=None, job_no=None, confidence=0.0, method=MatchMethod.NO_MATCH)
        self._log(thread_id, result, po_number=po_number)
        return result

    @staticmethod
    def _log(thread_id: str, result: MatchResult, **context) -> None:
        logger.info(
            "Email matched",
            thread_id=thread_id,
            method=result.method.value,
            job_id=result.job_id,
            confidence=result.confidence,
            **context,
        )


match_service = MatchService()
