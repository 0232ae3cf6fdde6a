"""
Batch job validation.

Validates the most recently created jobs, prints a violation summary table
and exits non-zero only when an ERROR-severity violation was found. WARN-only
runs exit 0.

Usage:
    python -m app.jobs.job_validation_job --limit 25
    python -m app.jobs.worker job_validation
"""

import argparse
import asyncio
import sys
from typing import TextIO

from app.db.pool import db_pool
from app.features.job_validation.services import (
    ValidationService,
    ValidationSummary,
    summarize,
    validation_service,
)
from app.infrastructure.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)

DEFAULT_LIMIT = 25

RULE = "=" * 72
DIVIDER = "-" * 30 + "|" + "-" * 7 + "|" + "-" * 7 + "|" + "-" * 25


def format_summary(summary: ValidationSummary) -> str:
    lines = [
        RULE,
        "VIOLATION SUMMARY",
        RULE,
        f"{'Code':<30}| {'Sev':<5} | {'Count':>5} | Sample Jobs",
        DIVIDER,
    ]

    if not summary.codes:
        lines.append("(No violations found)")
    for entry in summary.codes:
        lines.append(
            f"{entry.code:<30}| {entry.severity.value:<5} | {entry.count:>5} | "
            f"{', '.join(entry.samples)}"
        )

    lines += [
        RULE,
        f"Total: {summary.job_count} jobs | {summary.error_count} ERRORs | "
        f"{summary.warn_count} WARNs",
        f"OK: {summary.ok_count} jobs passed all checks",
        RULE,
    ]
    return "\n".join(lines)


async def run_job_validation(
    limit: int = DEFAULT_LIMIT,
    service: ValidationService | None = None,
    out: TextIO | None = None,
) -> int:
    """Validate recent jobs, print the summary, return the process exit code."""
    service = service or validation_service
    out = out or sys.stdout

    results = await service.validate_recent_jobs(limit)
    summary = summarize(results)

    print(f"Validated {summary.job_count} most recent jobs (limit {limit})", file=out)
    print(format_summary(summary), file=out)

    logger.info(
        "Job validation run complete",
        jobs=summary.job_count,
        ok=summary.ok_count,
        errors=summary.error_count,
        warnings=summary.warn_count,
    )
    return 1 if summary.has_errors else 0


async def run_job_validation_job(limit: int = DEFAULT_LIMIT) -> int:
    """Worker entry point: owns the database pool for the duration of the run."""
    opened_pool = not db_pool.initialized
    if opened_pool:
        await db_pool.initialize()
    try:
        return await run_job_validation(limit)
    finally:
        if opened_pool:
            await db_pool.close()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate recently created jobs.")
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Number of most recent jobs to validate (default {DEFAULT_LIMIT})",
    )
    args = parser.parse_args(argv)
    if args.limit < 1:
        parser.error("--limit must be at least 1")
    return args


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    setup_logging()
    args = parse_args(argv)
    sys.exit(asyncio.run(run_job_validation_job(args.limit)))


if __name__ == "__main__":
    main()
