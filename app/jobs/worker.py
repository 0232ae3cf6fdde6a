"""
Generic background worker runner.

Reads the desired job name from CLI args or the WORKER_JOB environment
variable and runs the matching job coroutine. A job may return an exit code.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable

from app.infrastructure.observability.logging import get_logger, setup_logging
from app.jobs.job_validation_job import run_job_validation_job

logger = get_logger(__name__)

JobCoroutine = Callable[[], Awaitable[int | None]]

JOB_REGISTRY: dict[str, JobCoroutine] = {
    "job_validation": run_job_validation_job,
}


def _resolve_job_name() -> str:
    """Pick the target job from CLI args or WORKER_JOB env variable."""
    if len(sys.argv) > 1:
        return sys.argv[1].strip().lower()
    return os.getenv("WORKER_JOB", "job_validation").strip().lower()


async def run_worker(job_name: str | None = None) -> int | None:
    """Run the requested background job."""
    name = (job_name or _resolve_job_name()).strip().lower()
    if name not in JOB_REGISTRY:
        raise ValueError(
            f"Unknown worker job '{name}'. "
            f"Available jobs: {', '.join(sorted(JOB_REGISTRY.keys()))}"
        )

    logger.info("Starting background worker", job=name)
    return await JOB_REGISTRY[name]()


def main() -> None:
    """CLI entrypoint."""
    setup_logging()
    job_name = _resolve_job_name()
    exit_code = asyncio.run(run_worker(job_name))
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
